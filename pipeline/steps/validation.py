from typing import Any, Dict

from utils.exceptions import InvalidPayloadError


def require_mapping(payload: Any, stage: str) -> Dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidPayloadError(f"Step '{stage}' expects an object payload", stage=stage)
    return payload


def require_ref(payload: Any, stage: str) -> Dict[str, Any]:
    """Checks that the payload carries a non-empty ``ref`` and returns it unchanged."""
    payload = require_mapping(payload, stage)
    ref = payload.get("ref")
    if ref is None or not str(ref).strip():
        raise InvalidPayloadError(f"Step '{stage}' requires a non-empty 'ref'", stage=stage)
    return payload
