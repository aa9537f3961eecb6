# services/api/core/document_naming.py
"""
Catalog metadata derived from an uploaded file's name: document type,
display name, and the default product sizes of a category.
"""
from typing import Dict, List, Tuple

# Checked in order; first match wins
_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("TDS", ("tds", "technical data")),
    ("ESR", ("esr", "evaluation report")),
    ("MSDS", ("msds", "safety data")),
    ("LEED", ("leed",)),
    ("Installation", ("installation", "install")),
    ("Warranty", ("warranty",)),
    ("Acoustic", ("acoustic", "esl")),
    ("PartSpec", ("spec", "3-part")),
)

DEFAULT_TYPE = "TDS"

DISPLAY_NAMES: Dict[str, str] = {
    "TDS": "Technical Data Sheet",
    "ESR": "Evaluation Report",
    "MSDS": "Material Safety Data Sheet",
    "LEED": "LEED Credit Guide",
    "Installation": "Installation Guide",
    "Warranty": "Limited Warranty",
    "Acoustic": "Acoustical Performance",
    "PartSpec": "3-Part Specifications",
}

PRODUCTS_BY_CATEGORY: Dict[str, List[str]] = {
    "structural-floor": ["3/4-in (20mm)"],
    "underlayment": ["1/2-in (13mm)", "5/8-in (16mm)"],
}


def detect_document_type(filename: str) -> str:
    lower = (filename or "").lower()
    for doc_type, keywords in _TYPE_KEYWORDS:
        if any(k in lower for k in keywords):
            return doc_type
    return DEFAULT_TYPE


def strip_pdf_extension(filename: str) -> str:
    name = filename or ""
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name


def extract_document_name(filename: str, doc_type: str) -> str:
    """Clean display name for a type; falls back to the bare filename."""
    return DISPLAY_NAMES.get(doc_type) or strip_pdf_extension(filename)


def default_products(product_type: str) -> List[str]:
    return list(PRODUCTS_BY_CATEGORY.get(product_type, PRODUCTS_BY_CATEGORY["structural-floor"]))
