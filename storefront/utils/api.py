# --- storefront/utils/api.py ---
from datetime import datetime, timezone
from flask import jsonify, request

def _api_time_human():
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

def api_ok(message, data=None):
    return {
        "status": True,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time_human()
        }
    }

def api_error(message, data=None):
    return {
        "status": False,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time_human()
        }
    }

# ---- standard API response format ------------------------------------------
def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r
def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r

def current_user_id():
    """Shopper id set by the auth layer in front of this service (X-User-Id)."""
    uid = request.headers.get("X-User-Id")
    try:
        return int(uid) if uid else None
    except ValueError:
        return None
