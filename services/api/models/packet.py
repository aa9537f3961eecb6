from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SectionReport:
    """What ended up in the packet for one requested document."""
    name: str
    divider_page: int                      # 1-based page number of the divider
    content_pages: int = 0
    error_pages: int = 0
    error: Optional[str] = None            # set when the whole document was replaced

    @property
    def total_pages(self) -> int:
        return 1 + self.content_pages + self.error_pages


@dataclass
class AssembledPacket:
    content: bytes
    page_count: int
    cover_pages: int
    info_pages: int
    cover_source: str                      # "template" | "synthesized"
    sections: List[SectionReport] = field(default_factory=list)

    @property
    def failed_sections(self) -> List[SectionReport]:
        return [s for s in self.sections if s.error is not None or s.error_pages]
