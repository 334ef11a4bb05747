# utils/__init__.py
from sqlalchemy.inspection import inspect


def column_keys(model) -> list:
    return [col.key for col in inspect(model).columns]


def sa_to_dict(obj):
    """SQLAlchemy object -> dict (mapped columns only)"""
    if obj is None:
        return None
    data = {}
    for key in column_keys(obj.__class__):
        data[key] = getattr(obj, key)
    return data


def sa_update_from_dict(obj, data: dict, allow_fields=None):
    """Copy values from `data` onto `obj`, restricted to `allow_fields` (default: mapped columns)."""
    if allow_fields is None:
        allow_fields = column_keys(obj.__class__)
    for k in allow_fields:
        if k in data:
            setattr(obj, k, data[k])
    return obj
