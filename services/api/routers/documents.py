# services/api/routers/documents.py
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response
from typing import Annotated, List, Optional
import logging

from adapters.base import DocumentRepository
from core.document_naming import default_products, detect_document_type, extract_document_name
from core.pdf_check import check_pdf
from core.validation import validate_pdf_upload
from models import StoredDocument
from schemas import DocumentExport, DocumentOut, DocumentUpdate, PdfCheckOut, ProductType
from settings import get_settings

logger = logging.getLogger(__name__)

# DI
def get_repository() -> DocumentRepository:
    # pulls the global repository from main.py
    from main import get_document_repository
    return get_document_repository()

Repository = Annotated[DocumentRepository, Depends(get_repository)]

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=List[DocumentOut])
async def list_documents(
    repo: Repository,
    product_type: Optional[ProductType] = Query(None, description="Only this product category"),
):
    docs = repo.get_by_product_type(product_type) if product_type else repo.get_all()
    return [DocumentOut.model_validate(d) for d in docs]


@router.get("/{doc_id}", response_model=DocumentOut)
async def get_document(doc_id: str, repo: Repository):
    return DocumentOut.model_validate(repo.get_by_id(doc_id))


@router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
async def upload_document(
    repo: Repository,
    file: UploadFile = File(...),
    product_type: ProductType = Form("structural-floor"),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    required: bool = Form(False),
):
    """
    Upload a PDF into the catalog.

    Type and display name are derived from the filename unless a name is given.
    """
    settings = get_settings()
    content = await file.read()
    validate_pdf_upload(
        content,
        file.content_type,
        min_bytes=settings.min_upload_bytes,
        max_bytes=settings.max_upload_bytes,
    )

    filename = file.filename or "document.pdf"
    doc_type = detect_document_type(filename)
    doc = StoredDocument(
        id="",
        name=name or extract_document_name(filename, doc_type),
        filename=filename,
        description=description or f"{doc_type} Document",
        size=len(content),
        type=doc_type,
        required=required,
        products=default_products(product_type),
        product_type=product_type,
    )
    stored = repo.insert(doc, content)
    logger.info(f"Stored document {stored.id} ({stored.type}, {stored.size} bytes) for {product_type}")
    return DocumentOut.model_validate(stored)


@router.patch("/{doc_id}", response_model=DocumentOut)
async def update_document(doc_id: str, body: DocumentUpdate, repo: Repository):
    changes = body.model_dump(exclude_unset=True)
    return DocumentOut.model_validate(repo.update(doc_id, changes))


@router.delete("/{doc_id}")
async def delete_document(doc_id: str, repo: Repository):
    repo.delete(doc_id)
    logger.info(f"Deleted document {doc_id}")
    return {"ok": True, "id": doc_id}


@router.get("/{doc_id}/base64", response_model=DocumentExport)
async def export_document(doc_id: str, repo: Repository):
    """Content in the shape packet requests expect (`fileData`)."""
    return DocumentExport(id=doc_id, file_data=repo.export_base64(doc_id))


@router.get("/{doc_id}/file")
async def download_document(doc_id: str, repo: Repository):
    doc = repo.get_by_id(doc_id)
    content = repo.get_file(doc_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{doc.filename or doc_id + ".pdf"}"'},
    )


@router.get("/{doc_id}/check", response_model=PdfCheckOut)
async def check_document(doc_id: str, repo: Repository):
    doc = repo.get_by_id(doc_id)
    return PdfCheckOut(**check_pdf(repo.get_file(doc_id), doc.filename or doc_id))
