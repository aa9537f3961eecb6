"""
Pydantic schemas for catalog documents.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .packet import ProductType


class DocumentOut(BaseModel):
    """Catalog document metadata as returned to the wizard."""
    id: str = Field(..., description="Document ID")
    name: str
    description: str = ""
    filename: str = ""
    url: str = ""
    size: int = 0
    type: str = "TDS"
    required: bool = False
    products: List[str] = Field(default_factory=list)
    product_type: ProductType = "structural-floor"

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DocumentUpdate(BaseModel):
    """Partial metadata update. The document id can never change."""
    name: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = Field(None, max_length=1000)
    url: Optional[str] = None
    type: Optional[str] = Field(None, max_length=50)
    required: Optional[bool] = None
    products: Optional[List[str]] = None
    product_type: Optional[ProductType] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentExport(BaseModel):
    """Document content for packet requests (`fileData`)."""
    id: str
    file_data: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PdfCheckOut(BaseModel):
    filename: str
    is_accessible: bool
    is_encrypted: bool
    page_count: Optional[int] = None
    error: Optional[str] = None
    size: int
