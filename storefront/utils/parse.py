# storefront/utils/parse.py
from datetime import datetime, timezone

def utcnow():
    # naive UTC, like the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)

def parse_iso8601(s):
    if not s:
        return None
    if isinstance(s, datetime):
        return s.astimezone(timezone.utc).replace(tzinfo=None) if s.tzinfo else s
    s = str(s).strip()
    # support trailing 'Z' (UTC)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None  # let validation catch it
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)  # store naive UTC
    return dt

def parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}

def parse_opt_int(v):
    if v is None:
        return None
    if isinstance(v, str) and v.strip().lower() in {"", "null"}:
        return None
    return int(v)
