from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from bson import ObjectId

EXTERNAL_ID_FIELDS = ("googleId", "githubId")


def to_jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def has_external_identity(account: Optional[Dict[str, Any]]) -> bool:
    if not account:
        return False
    return any(account.get(field) for field in EXTERNAL_ID_FIELDS)


def sum_amounts(records: Iterable[Dict[str, Any]]) -> float:
    total = 0
    for record in records:
        total += record.get("amount") or 0
    return total


def public_id_of(asset: Optional[Dict[str, Any]]) -> Optional[str]:
    if not asset:
        return None
    return asset.get("public_id") or None
