from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class StoredDocument:
    """
    Domain model for a catalog document held by the repository.

    This is a pure data object that is easy to map:
      - from SQL rows (dict[str, Any])
      - to Pydantic schemas (DocumentOut)
    The binary content lives in a separate table and is never loaded here.
    """
    id: str
    name: str
    filename: str = ""
    description: str = ""
    url: str = ""
    size: int = 0
    type: str = "TDS"                      # TDS / ESR / MSDS / LEED / Installation / Warranty / Acoustic / PartSpec
    required: bool = False
    products: List[str] = field(default_factory=list)
    product_type: str = "structural-floor"

    created_at: str = ""
    updated_at: str = ""
