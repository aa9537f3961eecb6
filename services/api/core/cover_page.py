# services/api/core/cover_page.py
"""
Synthesized cover page, used whenever the fillable template is unavailable.

Field order and checkbox rules match the template path: the same labelled
fields, the four Status / Action boxes, then one Submittal Type row per
available document name (checked iff it was selected).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from fpdf import FPDF
from PIL import Image

from core.pdf_pages import (
    BORDER_GRAY,
    COMPANY_ADDRESS,
    COMPANY_NAME,
    COMPANY_PHONE,
    DARK_GRAY,
    LETTER_H,
    LETTER_W,
    LIGHT_BLUE,
    MEDIUM_GRAY,
    NEXGEN_BLUE,
    SUPPORT_LINE,
    WHITE,
    draw_checkbox,
    draw_logo,
    draw_text,
    fill_rect,
    fit_text,
    new_letter_pdf,
    pdf_bytes,
    set_font,
    stroke_rect,
)
from schemas.packet import ProjectData

SECTION_CODE = "SECTION 06 16 26"
VERSION_LINE = "Version 1.0 October 2025 © 2025 NEXGEN Building Products"

TITLES = {
    "structural-floor": (
        "MAXTERRA® MgO Non-Combustible Structural",
        "Floor Panels Submittal Form",
    ),
    "underlayment": (
        "MAXTERRA® MgO Non-Combustible",
        "Underlayment Panels Submittal Form",
    ),
}

# Layout
LABEL_X = 50.0
VALUE_X = 200.0
FIELD_H = 25.0
ROW_H = 16.0
FIELDS_TOP = 125.0
# Checklist rows stop above the company footer block
CHECKLIST_LIMIT = LETTER_H - 150.0
CONTINUATION_TOP = 90.0


@dataclass(frozen=True)
class ChecklistRow:
    name: str
    checked: bool


def cover_field_rows(project: ProjectData) -> List[Tuple[str, str]]:
    """Labelled cover fields, in the same order as the template form."""
    return [
        ("Submitted To", project.submitted_to),
        ("Project Name", project.project_name),
        ("Project Number", project.project_number or ""),
        ("Prepared By", project.prepared_by),
        ("Phone/Email", project.phone_email),
        ("Date", project.date),
    ]


def build_checklist(
    available_names: Sequence[str],
    selected_names: Sequence[str],
) -> List[ChecklistRow]:
    """
    One row per distinct available name, checked iff selected.

    Selected names missing from the category list are appended (checked)
    after the category rows. With no category list at all, only the
    selected names are shown.
    """
    selected = set(selected_names)
    rows: List[ChecklistRow] = []
    seen = set()

    for name in available_names:
        if name in seen:
            continue
        seen.add(name)
        rows.append(ChecklistRow(name=name, checked=name in selected))

    for name in selected_names:
        if name in seen:
            continue
        seen.add(name)
        rows.append(ChecklistRow(name=name, checked=True))

    return rows


class _CoverBuilder:
    """Flows the cover content top to bottom; checklist rows may spill onto extra pages."""

    def __init__(self, project: ProjectData, logo: Optional[Image.Image]):
        self.project = project
        self.logo = logo
        self.pdf: FPDF = new_letter_pdf(title=f"Submittal Form - {project.project_name}")
        self.w = LETTER_W
        self.h = LETTER_H
        self.y = 0.0
        self.pages = 0

    def _add_page(self) -> None:
        self.pdf.add_page()
        self.pages += 1
        self._footer()

    def header(self) -> None:
        pdf = self.pdf
        self._add_page()
        draw_logo(pdf, self.logo, x=LABEL_X, top=30, height=25, fallback_baseline=50)

        fill_rect(pdf, self.w - 150, 40, 100, 20, NEXGEN_BLUE)
        set_font(pdf, 10, bold=True, color=WHITE)
        draw_text(pdf, self.w - 145, 54, SECTION_CODE)

        line1, line2 = TITLES.get(self.project.product_type, TITLES["structural-floor"])
        set_font(pdf, 12, color=DARK_GRAY)
        draw_text(pdf, LABEL_X, 100, line1)
        draw_text(pdf, LABEL_X, 115, line2)
        self.y = FIELDS_TOP

    def fields(self) -> None:
        pdf = self.pdf
        field_w = self.w - VALUE_X - 50
        for label, value in cover_field_rows(self.project):
            set_font(pdf, 10, color=DARK_GRAY)
            draw_text(pdf, LABEL_X, self.y + FIELD_H - 8, label)
            stroke_rect(pdf, VALUE_X, self.y, field_w, FIELD_H, color=BORDER_GRAY, width=0.5, fill=LIGHT_BLUE)
            set_font(pdf, 10)
            pdf.text(VALUE_X + 5, self.y + FIELD_H - 8, fit_text(pdf, value, field_w - 10))
            pdf.set_draw_color(*BORDER_GRAY)
            pdf.line(LABEL_X, self.y + FIELD_H, VALUE_X + field_w, self.y + FIELD_H)
            self.y += FIELD_H
        self.y += 10

    def status(self) -> None:
        pdf = self.pdf
        status = self.project.status
        set_font(pdf, 10, bold=True, color=DARK_GRAY)
        draw_text(pdf, LABEL_X, self.y + 10, "Status / Action")
        self.y += 20
        spacing = 130
        draw_checkbox(pdf, "For Review", status.for_review, VALUE_X, self.y)
        draw_checkbox(pdf, "For Approval", status.for_approval, VALUE_X + spacing, self.y)
        self.y += 18
        draw_checkbox(pdf, "For Record", status.for_record, VALUE_X, self.y)
        draw_checkbox(pdf, "For Information Only", status.for_information_only, VALUE_X + spacing, self.y)
        self.y += 30

    def checklist(self, rows: List[ChecklistRow]) -> None:
        pdf = self.pdf
        set_font(pdf, 10, bold=True, color=DARK_GRAY)
        draw_text(pdf, LABEL_X, self.y + 10, "Submittal Type (check all that apply):")
        self.y += 20

        if not rows:
            set_font(pdf, 9, color=(128, 128, 128))
            draw_text(pdf, VALUE_X, self.y + 10, "No documents available")
            self.y += ROW_H
            return

        label_width = self.w - VALUE_X - 50 - 17
        for row in rows:
            if self.y + ROW_H > CHECKLIST_LIMIT:
                self._add_page()
                set_font(pdf, 10, bold=True, color=DARK_GRAY)
                draw_text(pdf, LABEL_X, CONTINUATION_TOP - 20, "Submittal Type (continued):")
                self.y = CONTINUATION_TOP
            draw_checkbox(pdf, row.name, row.checked, VALUE_X, self.y, label_width=label_width)
            self.y += ROW_H

    def product(self) -> None:
        pdf = self.pdf
        if self.y + 24 > CHECKLIST_LIMIT:
            self._add_page()
            self.y = CONTINUATION_TOP
        self.y += 10
        set_font(pdf, 10, bold=True, color=DARK_GRAY)
        draw_text(pdf, LABEL_X, self.y + 10, "Product:")
        set_font(pdf, 10, color=DARK_GRAY)
        pdf.text(VALUE_X, self.y + 10, fit_text(pdf, self.project.product_label, self.w - VALUE_X - 50))
        self.y += 14

    def _footer(self) -> None:
        pdf = self.pdf
        footer_top = self.h - 120
        set_font(pdf, 9, bold=True, color=DARK_GRAY)
        draw_text(pdf, LABEL_X, footer_top, COMPANY_NAME)
        set_font(pdf, 8, color=MEDIUM_GRAY)
        draw_text(pdf, LABEL_X, footer_top + 12, COMPANY_ADDRESS)
        draw_text(pdf, LABEL_X, footer_top + 24, COMPANY_PHONE)
        draw_text(pdf, LABEL_X, footer_top + 36, SUPPORT_LINE)

        set_font(pdf, 7, color=MEDIUM_GRAY)
        version = fit_text(pdf, VERSION_LINE, self.w)
        pdf.text(self.w - pdf.get_string_width(version) - 50, self.h - 50, version)

    def build(self) -> bytes:
        return pdf_bytes(self.pdf)


def render_cover_pages(
    project: ProjectData,
    available_names: Sequence[str],
    selected_names: Sequence[str],
    logo: Optional[Image.Image] = None,
) -> Tuple[bytes, int]:
    """
    Render the synthesized cover.

    Returns:
        (pdf_bytes, page_count) - usually a single page; long checklists continue
        on further cover pages.
    """
    builder = _CoverBuilder(project, logo)
    builder.header()
    builder.fields()
    builder.status()
    builder.checklist(build_checklist(available_names, selected_names))
    builder.product()
    return builder.build(), builder.pages
