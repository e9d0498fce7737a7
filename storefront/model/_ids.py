# storefront/model/_ids.py
# id lists are stored as "1,2,3" text columns

def csv_to_idlist(s):
    if not s:
        return []
    return [x.strip() for x in str(s).split(",") if x.strip()]

def idlist_to_csv(values):
    if values is None:
        return None
    if isinstance(values, str):
        values = values.split(",")
    items = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return ",".join(items) or None

def api_ids(s):
    # numeric ids go back out as ints
    return [int(x) if x.isdigit() else x for x in csv_to_idlist(s)]
