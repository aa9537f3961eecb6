# services/api/core/pdf_pages.py
"""
Single-page renderers (fpdf2) and the drawing helpers shared by the
cover and product-info renderers.

All coordinates are PDF points on a US Letter page with a top-left origin.
Every renderer returns finished PDF bytes so the assembler can append the
pages with pypdf.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from fpdf import FPDF
from PIL import Image

LETTER_W = 612.0
LETTER_H = 792.0

# ---------- Brand palette (RGB 0-255) ---------------------------------------

NEXGEN_BLUE = (0, 162, 202)
DARK_GRAY = (33, 33, 33)
MEDIUM_GRAY = (68, 68, 69)
HEADER_DARK = (20, 20, 20)
ACCENT_ORANGE = (237, 99, 38)
LIGHT_BLUE = (230, 247, 250)
BORDER_GRAY = (179, 179, 179)
TEXT_GRAY = (102, 102, 102)
CAPTION_GRAY = (128, 128, 128)
ERROR_RED = (204, 51, 51)
ERROR_TEXT = (153, 51, 51)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

BRAND_TEXT = "NEXGEN"
COMPANY_NAME = "NEXGEN® Building Products, LLC"
COMPANY_ADDRESS = "1504 Manhattan Ave West, #300 Brandon, FL 34205"
COMPANY_PHONE = "(727) 634-5534"
SUPPORT_LINE = "Technical Support: support@nexgenbp.com"
COPYRIGHT = "© 2025 NEXGEN Building Products"

_TYPOGRAPHY = {
    "™": "TM",
    "–": "-",
    "—": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
    " ": " ",
}


# ---------- Helpers -----------------------------------------------------------

def safe_text(text: Optional[str]) -> str:
    """
    Make arbitrary text printable with the built-in Helvetica (latin-1) font.

    Common typographic characters are mapped to ASCII; anything else that
    latin-1 cannot encode becomes '?'. Rendering must never fail on a name.
    """
    s = str(text or "")
    for src, dst in _TYPOGRAPHY.items():
        s = s.replace(src, dst)
    return s.encode("latin-1", errors="replace").decode("latin-1")


def new_letter_pdf(title: str = "Submittal Packet") -> FPDF:
    pdf = FPDF(orientation="P", unit="pt", format="Letter")
    # Pagination is decided explicitly by each renderer.
    pdf.set_auto_page_break(auto=False)
    pdf.set_margins(0, 0, 0)
    pdf.set_title(safe_text(title))
    pdf.set_creator("PDF Packet Generator")
    return pdf


def pdf_bytes(pdf: FPDF) -> bytes:
    # fpdf2 returns a bytearray; very old releases returned a latin-1 str
    data = pdf.output()
    if isinstance(data, str):
        return data.encode("latin-1")
    return bytes(data)


def set_font(pdf: FPDF, size: float, bold: bool = False, color: Tuple[int, int, int] = BLACK) -> None:
    pdf.set_font("Helvetica", "B" if bold else "", size)
    pdf.set_text_color(*color)


def draw_text(pdf: FPDF, x: float, baseline: float, text: str) -> None:
    pdf.text(x, baseline, safe_text(text))


def fill_rect(pdf: FPDF, x: float, y: float, w: float, h: float, color: Tuple[int, int, int]) -> None:
    pdf.set_fill_color(*color)
    pdf.rect(x, y, w, h, style="F")


def stroke_rect(
    pdf: FPDF,
    x: float,
    y: float,
    w: float,
    h: float,
    color: Tuple[int, int, int] = BLACK,
    width: float = 1.0,
    fill: Optional[Tuple[int, int, int]] = None,
) -> None:
    pdf.set_draw_color(*color)
    pdf.set_line_width(width)
    if fill is not None:
        pdf.set_fill_color(*fill)
        pdf.rect(x, y, w, h, style="DF")
    else:
        pdf.rect(x, y, w, h, style="D")


def wrap_lines(pdf: FPDF, text: str, max_width: float) -> List[str]:
    """
    Greedy word wrap using the current font's metrics.
    A single word wider than max_width is kept on its own line.
    """
    words = safe_text(text).split()
    lines: List[str] = []
    line = ""
    for word in words:
        candidate = f"{line} {word}" if line else word
        if line and pdf.get_string_width(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def fit_text(pdf: FPDF, text: str, max_width: float) -> str:
    """Truncate text with '...' so it fits on one line."""
    s = safe_text(text)
    if pdf.get_string_width(s) <= max_width:
        return s
    while s and pdf.get_string_width(s + "...") > max_width:
        s = s[:-1]
    return s + "..."


def draw_logo(
    pdf: FPDF,
    logo: Optional[Image.Image],
    x: float,
    top: float,
    height: float,
    fallback_baseline: float,
) -> None:
    """Draw the logo scaled to `height`, or the brand word when no image is available."""
    if logo is not None and logo.height > 0:
        width = logo.width / logo.height * height
        pdf.image(logo, x=x, y=top, w=width, h=height)
        return
    set_font(pdf, 24, bold=True, color=NEXGEN_BLUE)
    draw_text(pdf, x, fallback_baseline, BRAND_TEXT)


def draw_checkbox(
    pdf: FPDF,
    label: str,
    checked: bool,
    x: float,
    top: float,
    size: float = 12,
    label_width: Optional[float] = None,
) -> None:
    """Square checkbox with a filled 'X' when checked, label to the right."""
    stroke_rect(pdf, x, top, size, size, color=BORDER_GRAY, width=1)
    if checked:
        fill_rect(pdf, x + 2, top + 2, size - 4, size - 4, NEXGEN_BLUE)
        set_font(pdf, 9, bold=True, color=WHITE)
        draw_text(pdf, x + 3, top + size - 3, "X")
    set_font(pdf, 9, color=DARK_GRAY)
    text = safe_text(label)
    if label_width is not None:
        text = fit_text(pdf, text, label_width)
    pdf.text(x + size + 5, top + size - 2, text)


# ---------- Divider page -----------------------------------------------------

_DIVIDER_NAME_SIZES = (40, 32, 24, 18)
_DIVIDER_MAX_LINES = 3


def render_divider_page(
    document_name: str,
    page_number: int,
    logo: Optional[Image.Image] = None,
) -> bytes:
    """
    Section divider placed before every merged document.

    Dark header with logo, orange accent bar, white body with the
    document name in large type, and a running page number.
    """
    pdf = new_letter_pdf(title=f"Section Divider - {document_name}")
    pdf.add_page()
    w, h = LETTER_W, LETTER_H

    header_h = 96.75
    bar_h = 9.0
    fill_rect(pdf, 0, 0, w, header_h, HEADER_DARK)
    draw_logo(pdf, logo, x=15, top=40, height=30, fallback_baseline=60)

    set_font(pdf, 9, color=CAPTION_GRAY)
    draw_text(pdf, 15, 84, "Package Section Divider")

    fill_rect(pdf, 0, header_h, w, bar_h, ACCENT_ORANGE)
    fill_rect(pdf, 0, header_h + bar_h, w, h - header_h - bar_h, WHITE)

    set_font(pdf, 32, color=BLACK)
    draw_text(pdf, 74, 180, "Section Divider")

    # Shrink long names until they fit in a few lines
    max_width = w - 74 - 42
    for size in _DIVIDER_NAME_SIZES:
        set_font(pdf, size, bold=True, color=BLACK)
        lines = wrap_lines(pdf, document_name, max_width)
        if len(lines) <= _DIVIDER_MAX_LINES:
            break
    lines = lines[: _DIVIDER_MAX_LINES * 2]

    baseline = 230.0
    for line in lines:
        pdf.text(74, baseline, line)
        baseline += size * 1.15

    set_font(pdf, 10, color=TEXT_GRAY)
    draw_text(pdf, 42, h - 60, f"Page {page_number}")

    footer_h = 30.0
    fill_rect(pdf, 0, h - footer_h, w, footer_h, NEXGEN_BLUE)
    set_font(pdf, 9, color=WHITE)
    footer = safe_text(COPYRIGHT)
    pdf.text(w / 2 - pdf.get_string_width(footer) / 2, h - 12, footer)

    return pdf_bytes(pdf)


# ---------- Error page -------------------------------------------------------

def render_error_page(document_name: str, error_message: str) -> bytes:
    """
    Plain substitute page for a document (or a single page) that could not be merged.
    """
    pdf = new_letter_pdf(title=f"Document Error - {document_name}")
    pdf.add_page()
    margin = 50.0
    max_width = LETTER_W - 2 * margin

    set_font(pdf, 16, bold=True, color=ERROR_RED)
    draw_text(pdf, margin, 100, "DOCUMENT ERROR")

    baseline = 150.0
    set_font(pdf, 14, bold=True, color=BLACK)
    for line in wrap_lines(pdf, document_name or "Untitled document", max_width)[:4]:
        pdf.text(margin, baseline, line)
        baseline += 17

    baseline += 13
    set_font(pdf, 12, color=ERROR_TEXT)
    for line in wrap_lines(pdf, f"Error: {error_message}", max_width)[:10]:
        pdf.text(margin, baseline, line)
        baseline += 15

    baseline += 25
    set_font(pdf, 10, color=TEXT_GRAY)
    draw_text(pdf, margin, baseline, "Please contact support if this error persists.")
    draw_text(pdf, margin, baseline + 14, SUPPORT_LINE)

    return pdf_bytes(pdf)
