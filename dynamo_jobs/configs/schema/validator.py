"""Config schema validation helpers."""


def _positive_int(raw, key):
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{key} must be a positive integer")


def validate_store_config(raw):
    if not isinstance(raw, dict):
        raise ValueError("store config must be an object")

    if not raw.get("table_name") or not isinstance(raw.get("table_name"), str):
        raise ValueError("table_name is required")

    _positive_int(raw, "page_size")
    _positive_int(raw, "max_attempts")

    for key in ("connect_timeout", "read_timeout"):
        value = raw.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ValueError(f"{key} must be a positive number")

    return raw
