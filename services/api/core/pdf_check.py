# services/api/core/pdf_check.py
"""
Quick accessibility check for a stored PDF.
"""
from __future__ import annotations

import io
import logging
from typing import Any, Dict

from pypdf import PdfReader
from pypdf.errors import PyPdfError

logger = logging.getLogger(__name__)


def check_pdf(content: bytes, filename: str) -> Dict[str, Any]:
    """
    Open a PDF and report whether the packet builder could merge it.

    Encrypted files are retried with the empty password, the same way
    packet assembly opens them.

    Returns:
        dict(filename, is_accessible, is_encrypted, page_count, error, size)
    """
    result: Dict[str, Any] = {
        "filename": filename,
        "is_accessible": False,
        "is_encrypted": False,
        "page_count": None,
        "error": None,
        "size": len(content),
    }

    try:
        reader = PdfReader(io.BytesIO(content))
        if reader.is_encrypted:
            result["is_encrypted"] = True
            try:
                opened = reader.decrypt("")
            except (PyPdfError, NotImplementedError) as e:
                result["error"] = f"PDF is encrypted and cannot be processed ({e})"
                return result
            if not opened:
                result["error"] = "PDF is encrypted and cannot be processed"
                return result
            result["error"] = "PDF is encrypted but can be processed"
        result["page_count"] = len(reader.pages)
        result["is_accessible"] = True
    except Exception as e:
        logger.warning(f"PDF check failed for {filename}: {str(e)}")
        result["error"] = str(e) or "Unknown PDF error"

    return result
