from __future__ import annotations

from .document import StoredDocument
from .packet import AssembledPacket, SectionReport

__all__ = ["AssembledPacket", "SectionReport", "StoredDocument"]
