# services/api/core/product_info.py
"""
Product information page(s) appended after the cover.

Content comes in two variants (structural floor / underlayment). Layout is a
simple vertical flow on Letter pages: before each logical section we check
the remaining height and start a new page if the section would not fit.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from fpdf import FPDF

from core.pdf_pages import (
    BLACK,
    draw_text,
    LETTER_H,
    LETTER_W,
    new_letter_pdf,
    pdf_bytes,
    set_font,
    stroke_rect,
    wrap_lines,
)

MARGIN = 50.0
# Keep clear of the page-number stamp at the bottom
BOTTOM_LIMIT = LETTER_H - 60.0
LINE_H = 12.0
SECTION_SPACING = 18.0
PARAGRAPH_SPACING = 10.0
BODY_SIZE = 9
HEADING_SIZE = 11


@dataclass(frozen=True)
class SpecEntry:
    heading: str
    lines: Tuple[str, ...]
    standard: str = ""


@dataclass(frozen=True)
class ProductContent:
    title: str
    sections: Tuple[Tuple[str, str], ...]
    left_specs: Tuple[SpecEntry, ...]
    right_specs: Tuple[SpecEntry, ...]


_COMMON_RIGHT_SPECS = (
    SpecEntry(
        "Surface Burning Characteristics",
        ("Flame Spread Index: 0", "Smoke Developed Index: 0"),
        standard="(ASTM E84 / UL 723)",
    ),
    SpecEntry("STC / IIC Acoustic Performance", ("See ESL-1645",), standard="(ASTM E90 and ASTM E492)"),
    SpecEntry("Allowable Exposure", ("Up to 200 days",)),
)

STRUCTURAL_FLOOR = ProductContent(
    title="What Are MAXTERRA® MgO Non-Combustible Structural Floor Panels",
    sections=(
        (
            "",
            "MAXTERRA® MgO Non-Combustible Structural Floor Panels are high-performance subfloor panels "
            "with tongue and groove edges engineered to deliver fire resistance, acoustical performance, "
            "structural performance, and long-term durability in a single product.",
        ),
        (
            "Applications",
            "MAXTERRA® MgO Non-Combustible Structural Floor Panels are engineered and tested for use on wood "
            "and cold-formed steel framing across a wide range of structural subfloor applications, delivering "
            "superior structural performance, fire resistance, acoustic control, and long-term durability. "
            "Designed to replace traditional plywood, OSB, wet-laid gypsum underlayment, or concrete deck "
            "systems, MAXTERRA® MgO Non-Combustible Structural Floor Panels provide a stronger, more "
            "dimensionally stable platform that meets the demands of multifamily, hospitality, modular, and "
            "other high-performance construction projects. MAXTERRA® MgO Non-Combustible Structural Floor "
            "Panels are recognized by the International Code Council Evaluation Service (ICC-ES) under "
            "Evaluation Report ESR-5194, Listing Report ESL-1645, and Underwriters Laboratories (UL) under "
            "Report R41539 confirming compliance for use in fire-rated and sound-rated floor assemblies "
            "across Types I–V construction.",
        ),
        (
            "Skip-the-Gyp™ & Ditch-the-Deck™ Advantage",
            "MAXTERRA® MgO Non-Combustible Structural Floor Panels are engineered as a single-layer system "
            "that delivers a faster, cleaner, and more efficient installation process while achieving "
            "code-required STC/IIC sound when installed as part of tested floor/ceiling assemblies. Unlike "
            "gypsum cement underlayment or costly and complex pan-and-pour systems, MAXTERRA® panels eliminate "
            "the need for a separate wet-floor trades, door header or base plate modifications, added project "
            "oversight, and lengthy cure times that can delay or halt construction schedules. The result is a "
            "streamlined, single-trade solution that ensures reliable fire, sound, and structural performance "
            "across all types of high-demand projects.",
        ),
    ),
    left_specs=(
        SpecEntry("Available Thicknesses", ("3/4-inch (20 mm)",)),
        SpecEntry("Available Lengths", ("8 feet; 10 feet",)),
        SpecEntry("Product Weight", ("4.92 lb/sqft",)),
        SpecEntry("Edge Profile", ("Tongue & Groove (TG), & Square Edge (SE)*",)),
        SpecEntry("Mold / Mildew Resistance (ASTM G21)", ('"0 Growth Observed"',)),
    ),
    right_specs=_COMMON_RIGHT_SPECS,
)

UNDERLAYMENT = ProductContent(
    title="What Is MAXTERRA® MgO Fire- And Water-Resistant Underlayment",
    sections=(
        (
            "",
            "MAXTERRA® MgO Fire- And Water-Resistant Underlayment Panels are engineered to deliver superior "
            "fire resistance, acoustic performance, and dimensional stability for today's demanding job sites. "
            "Manufactured from magnesium oxide (MgO) with reinforcing glass fiber mesh, MAXTERRA® panels "
            "provide a high-density, fire-resistant solution. They are designed for use as flooring underlayment "
            "over wood structural panels, serving as a durable replacement for other underlayment products such "
            "as wet-laid gypsum in both sound- and fire-rated assemblies.",
        ),
        (
            "Applications",
            "MAXTERRA® MgO Fire- And Water-Resistant Underlayment Panels are engineered and tested for use "
            "across a wide range of flooring underlayment applications, delivering proven performance in sound "
            "control, fire resistance, and structural durability. MAXTERRA® provides a more durable and "
            "dimensionally stable solution and is ideally suited for multifamily, hospitality, modular, and "
            "other high-performance construction projects. MAXTERRA® MgO Fire- And Water-Resistant "
            "Underlayment Panels are recognized by the International Code Council Evaluation Service (ICC-ES) "
            "under Evaluation Report ESR-5192 and Listing Report ESL-1645.",
        ),
        (
            "Skip-the-Gyp™ Advantage",
            "MAXTERRA® MgO Fire- And Water-Resistant Underlayment Panels are engineered to achieve "
            "code-required STC/IIC sound ratings without the need for gypsum cement underlayment or sound "
            "mats, when installed as part of tested floor/ceiling assemblies. Unlike gypsum cement, MAXTERRA® "
            "MgO Fire- And Water-Resistant Underlayment Panels eliminate the need for a separate gypsum "
            "underlayment trade, additional sill plates, modifications to door headers, and additional project "
            "oversight – all while avoiding long cure times, cleanup, and callbacks that can delay or halt "
            "construction schedules. The result is a faster, cleaner, and more efficient installation process "
            "with reliable performance.",
        ),
    ),
    left_specs=(
        SpecEntry("Available Thicknesses", ('1/2" (12 mm), & 5/8" (16 mm)',)),
        SpecEntry("Available Dimensions", ("4 feet x 8 feet",)),
        SpecEntry("Product Weight", ('1/2" (12 mm): 2.22 lb/sqft', '5/8" (16 mm): 2.95 lb/sqft')),
        SpecEntry("Edge Profile", ("Square Edge (SE)",)),
        SpecEntry("Construction Types", ("Types III, IV-C, IV-HT, and V",)),
    ),
    right_specs=_COMMON_RIGHT_SPECS,
)

CONTENT_BY_PRODUCT = {
    "structural-floor": STRUCTURAL_FLOOR,
    "underlayment": UNDERLAYMENT,
}

APPROVAL_OPTIONS = (
    ("Approved", 0),
    ("Revise & Resubmit", 80),
    ("Approval as Noted", 200),
    ("Rejected", 330),
)


class _InfoBuilder:
    """
    Vertical-flow builder:
      - Letter portrait, 50pt margins
      - each logical section is measured first and moved to a new page if needed
    """

    def __init__(self, content: ProductContent):
        self.content = content
        self.pdf: FPDF = new_letter_pdf(title="Product Information")
        self.content_w = LETTER_W - 2 * MARGIN
        self.pages = 0
        self.y = MARGIN
        self._new_page()

    def _new_page(self) -> None:
        self.pdf.add_page()
        self.pages += 1
        self.y = MARGIN

    def _ensure_space(self, block_h: float) -> None:
        """Add page if the next block won't fit."""
        if self.y + block_h > BOTTOM_LIMIT:
            self._new_page()

    def _heading(self, x: float, y: float, text: str) -> float:
        set_font(self.pdf, HEADING_SIZE, bold=True)
        draw_text(self.pdf, x, y, text)
        return y + SECTION_SPACING

    def prose(self, heading: str, body: str) -> None:
        set_font(self.pdf, BODY_SIZE)
        lines = wrap_lines(self.pdf, body, self.content_w)
        block_h = (SECTION_SPACING if heading else 0) + len(lines) * LINE_H + PARAGRAPH_SPACING
        self._ensure_space(block_h)

        if heading:
            set_font(self.pdf, HEADING_SIZE, bold=True)
            self.y = self._heading(MARGIN, self.y, heading)
        set_font(self.pdf, BODY_SIZE)
        for line in lines:
            self.pdf.text(MARGIN, self.y, line)
            self.y += LINE_H
        self.y += PARAGRAPH_SPACING

    def title(self) -> None:
        set_font(self.pdf, HEADING_SIZE, bold=True)
        for line in wrap_lines(self.pdf, self.content.title, self.content_w):
            self.pdf.text(MARGIN, self.y, line)
            self.y += SECTION_SPACING

    @staticmethod
    def _spec_height(entries: Tuple[SpecEntry, ...]) -> float:
        h = 0.0
        for entry in entries:
            h += SECTION_SPACING
            if entry.standard:
                h += LINE_H
            h += LINE_H * (len(entry.lines) - 1) + SECTION_SPACING
        return h

    def _spec_column(self, x: float, top: float, entries: Tuple[SpecEntry, ...]) -> float:
        y = top
        for entry in entries:
            y = self._heading(x, y, entry.heading)
            if entry.standard:
                set_font(self.pdf, 8, color=(77, 77, 77))
                draw_text(self.pdf, x, y, entry.standard)
                y += LINE_H
            set_font(self.pdf, BODY_SIZE)
            for i, line in enumerate(entry.lines):
                draw_text(self.pdf, x, y, line)
                y += LINE_H if i < len(entry.lines) - 1 else SECTION_SPACING
        return y

    def specifications(self) -> None:
        block_h = 10 + max(self._spec_height(self.content.left_specs), self._spec_height(self.content.right_specs))
        self._ensure_space(block_h)
        top = self.y + 10
        left_end = self._spec_column(MARGIN, top, self.content.left_specs)
        right_end = self._spec_column(LETTER_W / 2 + 20, top, self.content.right_specs)
        self.y = max(left_end, right_end) + 20

    def remarks(self) -> None:
        self._ensure_space(SECTION_SPACING + 50)
        self.y = self._heading(MARGIN, self.y, "Remarks")
        stroke_rect(self.pdf, MARGIN, self.y - 5, self.content_w, 35, color=BLACK, width=1)
        self.y += 50

    def approvals(self) -> None:
        self._ensure_space(SECTION_SPACING + 5 + 15 + 25 + 12)
        pdf = self.pdf
        self.y = self._heading(MARGIN, self.y, "Approvals")
        self.y += 5
        set_font(pdf, BODY_SIZE, bold=True)
        pdf.text(MARGIN, self.y, "Architect/Engineer Review")
        self.y += 15

        box = 10.0
        for label, offset in APPROVAL_OPTIONS:
            stroke_rect(pdf, MARGIN + offset, self.y - box, box, box, color=BLACK, width=1)
            set_font(pdf, 8)
            pdf.text(MARGIN + offset + 15, self.y - 2, label)
        self.y += 25

        set_font(pdf, BODY_SIZE)
        pdf.text(MARGIN, self.y, "Signature ________________________")
        pdf.text(MARGIN + 250, self.y, "Date ____________")
        self.y += 12

    def build(self) -> bytes:
        return pdf_bytes(self.pdf)


def render_product_info(product_type: str) -> Tuple[bytes, int]:
    """
    Render the product information page(s) for a category.

    Returns:
        (pdf_bytes, page_count)
    """
    content = CONTENT_BY_PRODUCT.get(product_type, STRUCTURAL_FLOOR)
    builder = _InfoBuilder(content)
    builder.title()
    for heading, body in content.sections:
        builder.prose(heading, body)
    builder.specifications()
    builder.remarks()
    builder.approvals()
    return builder.build(), builder.pages

