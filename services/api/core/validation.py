"""
Upload validation for the document repository.
Ensures stored documents are real PDFs and provides clear error messages.
"""
from typing import Optional

from fastapi import HTTPException

PDF_CONTENT_TYPES = ("application/pdf", "application/x-pdf")


def validate_pdf_upload(
    content: bytes,
    content_type: Optional[str],
    min_bytes: int,
    max_bytes: int,
) -> None:
    """
    Validate an uploaded file before it is stored.

    Rules:
    - content type must be PDF (a missing type is accepted, the signature decides)
    - size must be within [min_bytes, max_bytes]
    - the file must start with the %PDF signature

    Raises:
        HTTPException: 400 if validation fails
    """
    if content_type and content_type.split(";")[0].strip().lower() not in PDF_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="File must be a PDF document"
        )

    size = len(content)
    if size > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {max_bytes // (1024 * 1024)}MB limit"
        )
    if size < min_bytes:
        raise HTTPException(
            status_code=400,
            detail="File is too small to be a valid PDF"
        )

    if not content.startswith(b"%PDF"):
        raise HTTPException(
            status_code=400,
            detail="File does not appear to be a valid PDF"
        )
