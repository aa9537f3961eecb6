# services/api/core/page_stamp.py
"""
Global page numbering.

Runs once, after every page has been inserted. Numbers are drawn on an fpdf2
overlay (one overlay page per packet page, sized to its media box) and merged
onto the packet with pypdf.
"""
from __future__ import annotations

import io
import logging
from typing import List, Tuple

from pypdf import PdfReader, PdfWriter

from core.pdf_pages import TEXT_GRAY, new_letter_pdf, pdf_bytes, set_font

logger = logging.getLogger(__name__)

# Offsets from the bottom-right corner of the media box, in points
NUMBER_RIGHT_OFFSET = 50.0
NUMBER_BOTTOM_OFFSET = 30.0
NUMBER_FONT_SIZE = 10


def _normalize_rotation(writer: PdfWriter) -> None:
    """Bake /Rotate into the content so 'bottom-right' is where the reader sees it."""
    for page in writer.pages:
        if page.rotation % 360:
            page.transfer_rotation_to_content()


def _page_boxes(writer: PdfWriter) -> List[Tuple[float, float, float, float]]:
    boxes = []
    for page in writer.pages:
        box = page.mediabox
        boxes.append((float(box.left), float(box.bottom), float(box.width), float(box.height)))
    return boxes


def render_number_overlay(sizes: List[Tuple[float, float]]) -> bytes:
    """One overlay page per size, carrying only its 1-based page number."""
    pdf = new_letter_pdf(title="Page numbers")
    for index, (w, h) in enumerate(sizes, start=1):
        pdf.add_page(format=(w, h))
        set_font(pdf, NUMBER_FONT_SIZE, color=TEXT_GRAY)
        pdf.text(w - NUMBER_RIGHT_OFFSET, h - NUMBER_BOTTOM_OFFSET, str(index))
    return pdf_bytes(pdf)


def stamp_page_numbers(writer: PdfWriter) -> int:
    """
    Stamp 1..N on every page of `writer`, in place.

    Returns:
        number of pages stamped
    """
    if not writer.pages:
        return 0

    _normalize_rotation(writer)
    boxes = _page_boxes(writer)
    overlay = PdfReader(io.BytesIO(render_number_overlay([(w, h) for _, _, w, h in boxes])))

    for page, stamp, (left, bottom, _, _) in zip(writer.pages, overlay.pages, boxes):
        page.merge_translated_page(stamp, left, bottom)

    logger.info(f"Stamped page numbers on {len(boxes)} pages")
    return len(boxes)
