"""
Response unwrapping helpers

The backend wraps results inconsistently. Everything shape-related is
handled here so services only ever see flat lists and plain objects.
"""

from typing import Any, Dict, List, Optional


def _payload(res: Any) -> Any:
    if isinstance(res, dict) and res.get("data") is not None:
        return res["data"]
    return res


def pick_array(res: Any) -> List[Any]:
    """
    Extract a list from ``[...]``, ``{data: [...]}``, ``{data: {data: [...]}}``,
    ``{items: [...]}`` or ``{data: {items: [...]}}``. Anything else is empty.
    """
    payload = _payload(res)
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "items"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


def pick_object(res: Any, key: Optional[str] = None) -> Dict[str, Any]:
    """
    Extract an object, optionally unwrapping ``{key: {...}}`` or
    ``{data: {key: {...}}}``.
    """
    payload = _payload(res)
    if not isinstance(payload, dict):
        return {}
    if key:
        if isinstance(payload.get(key), dict):
            return payload[key]
        nested = payload.get("data")
        if isinstance(nested, dict) and isinstance(nested.get(key), dict):
            return nested[key]
    return payload


def first_present(obj: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key holding something other than None/empty string"""
    for key in keys:
        value = obj.get(key)
        if value is not None and value != "":
            return value
    return None
