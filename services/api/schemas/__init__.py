"""
Pydantic schemas for API request/response validation.
"""
from .document import DocumentExport, DocumentOut, DocumentUpdate, PdfCheckOut
from .packet import (
    ClassifyRequest,
    DocumentRequest,
    GeneratePacketRequest,
    ProductType,
    ProjectData,
    StatusFlags,
    SubmittalTypeFlags,
)

# Re-export all
__all__ = [
    "ClassifyRequest",
    "DocumentExport",
    "DocumentOut",
    "DocumentRequest",
    "DocumentUpdate",
    "GeneratePacketRequest",
    "PdfCheckOut",
    "ProductType",
    "ProjectData",
    "StatusFlags",
    "SubmittalTypeFlags",
]
