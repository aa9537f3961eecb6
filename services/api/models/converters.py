from __future__ import annotations

import json
from typing import Any, Dict, List

from . import StoredDocument


def _bool_from_row(v: Any) -> bool:
    """
    SQLite hands booleans back as 0/1; older rows may hold strings.
    Accepts: TRUE/FALSE, 1/0, yes/no, y/n (case-insensitive).
    """
    if v is None:
        return False
    if isinstance(v, bool):
        return v
    s = str(v).strip().upper()
    return s in ("TRUE", "1", "YES", "Y")


def _list_from_row(v: Any) -> List[str]:
    if v is None or v == "":
        return []
    if isinstance(v, list):
        return [str(x) for x in v]
    try:
        parsed = json.loads(v)
    except (TypeError, ValueError):
        return [s.strip() for s in str(v).split(",") if s.strip()]
    return [str(x) for x in parsed] if isinstance(parsed, list) else []


def document_from_row(row: Dict[str, Any]) -> StoredDocument:
    return StoredDocument(
        id=str(row.get("id", "")),
        name=row.get("name") or "",
        filename=row.get("filename") or "",
        description=row.get("description") or "",
        url=row.get("url") or "",
        size=int(row.get("size") or 0),
        type=row.get("type") or "TDS",
        required=_bool_from_row(row.get("required")),
        products=_list_from_row(row.get("products")),
        product_type=row.get("product_type") or "structural-floor",
        created_at=str(row.get("created_at") or ""),
        updated_at=str(row.get("updated_at") or ""),
    )
