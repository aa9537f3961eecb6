# services/api/core/cover_template.py
"""
Cover page acquisition.

Preferred path: download the category's fillable template, fill its AcroForm
fields with pypdf and flatten it. Any failure on that path (no URL, network,
HTTP status, unreadable PDF, no form fields) falls back to the synthesized
cover from core.cover_page. Acquisition itself never raises.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import httpx
from pypdf import PdfReader, PdfWriter
from pypdf.generic import NameObject

from core.cover_page import render_cover_pages
from core.document_source import ImageLoader, fetch_bytes
from core.errors import DocumentResolutionError
from schemas.packet import ProjectData
from settings import Settings

logger = logging.getLogger(__name__)

OFF_STATE = "/Off"


@dataclass(frozen=True)
class TemplateCover:
    content: bytes
    page_count: int
    filled_fields: Tuple[str, ...] = ()
    source: str = "template"


@dataclass(frozen=True)
class SynthesizedCover:
    content: bytes
    page_count: int
    reason: str = ""
    source: str = "synthesized"


CoverResult = Union[TemplateCover, SynthesizedCover]


# ---------- Field aliases ------------------------------------------------------
# Template authors name fields inconsistently; the first candidate present
# with the right field type wins.

def text_field_values(project: ProjectData) -> List[Tuple[Tuple[str, ...], str]]:
    return [
        (("Submitted To", "submittedTo", "submitted_to"), project.submitted_to),
        (("Project Name", "projectName", "project_name"), project.project_name),
        (("Project Number", "projectNumber", "project_number"), project.project_number or ""),
        (("Prepared By", "preparedBy", "prepared_by"), project.prepared_by),
        (("Phone/Email", "phoneEmail", "phone_email", "PhoneEmail"), project.phone_email),
        (("Date", "date"), project.date),
    ]


def checkbox_field_values(project: ProjectData) -> List[Tuple[Tuple[str, ...], bool]]:
    status = project.status
    st = project.submittal_type
    rows: List[Tuple[Tuple[str, ...], bool]] = [
        (("For Review", "forReview", "for_review"), status.for_review),
        (("For Approval", "forApproval", "for_approval"), status.for_approval),
        (("For Record", "forRecord", "for_record"), status.for_record),
        (("For Information Only", "forInformationOnly", "for_information_only"), status.for_information_only),
        (("TDS", "tds"), st.tds),
        (("3-Part Specs", "3PartSpecs", "threePartSpecs"), st.three_part_specs),
        (("Test Report ICC-ESR 5194", "testReportIccEsr5194"), st.test_report_icc_esr_5194),
        (("Test Report ICC-ESR 5192", "testReportIccEsr5192"), st.test_report_icc_esr_5192),
        (("Test Report ICC-ESL 1645", "testReportIccEsl1645"), st.test_report_icc_esl_1645),
        (("Fire Assembly", "fireAssembly"), st.fire_assembly),
    ]
    for n in range(1, 10):
        rows.append(
            ((f"Fire Assembly {n:02d}", f"fireAssembly{n:02d}"), getattr(st, f"fire_assembly_{n:02d}"))
        )
    rows += [
        (("MSDS", "msds", "Material Safety Data Sheet"), st.msds),
        (("LEED Guide", "leedGuide"), st.leed_guide),
        (("Installation Guide", "installationGuide"), st.installation_guide),
        (("Warranty", "warranty"), st.warranty),
        (("Samples", "samples"), st.samples),
        (("Other", "other"), st.other),
    ]
    return rows


# ---------- Template fill ------------------------------------------------------

def _field_kind(field) -> Optional[str]:
    ft = field.get("/FT")
    if ft == "/Tx":
        return "text"
    if ft == "/Btn":
        return "checkbox"
    return None


def _on_state(field) -> str:
    """Export value of a checkbox's 'on' appearance (usually /Yes)."""
    for state in field.get("/_States_", []) or []:
        if state != OFF_STATE:
            return str(state)
    return "/Yes"


def _pick_field(fields: Dict[str, object], candidates: Sequence[str], kind: str) -> Optional[str]:
    for name in candidates:
        field = fields.get(name)
        if field is not None and _field_kind(field) == kind:
            return name
    return None


def resolve_field_values(fields: Dict[str, object], project: ProjectData) -> Dict[str, str]:
    """
    Map our logical values onto the template's actual field names.
    Logical fields with no matching template field are skipped.
    """
    values: Dict[str, str] = {}
    for candidates, value in text_field_values(project):
        name = _pick_field(fields, candidates, "text")
        if name is not None:
            values[name] = value
    for candidates, checked in checkbox_field_values(project):
        name = _pick_field(fields, candidates, "checkbox")
        if name is not None:
            values[name] = _on_state(fields[name]) if checked else OFF_STATE
    return values


def _current_values(fields: Dict[str, object]) -> Dict[str, str]:
    """Existing values for fields we don't touch, so flattening keeps them visible."""
    values: Dict[str, str] = {}
    for name, field in fields.items():
        kind = _field_kind(field)
        if kind == "text":
            values[name] = str(field.get("/V") or "")
        elif kind == "checkbox":
            values[name] = str(field.get("/V") or OFF_STATE)
    return values


def _remove_form(writer: PdfWriter) -> None:
    writer.remove_annotations(subtypes="/Widget")
    if "/AcroForm" in writer._root_object:
        del writer._root_object[NameObject("/AcroForm")]


def fill_template(template: bytes, project: ProjectData) -> TemplateCover:
    """
    Fill and flatten a fillable cover template.

    Per-field failures are logged and skipped.

    Raises:
        ValueError: the template has no form fields.
        pypdf errors: the template is not a readable PDF.
    """
    reader = PdfReader(io.BytesIO(template))
    fields = reader.get_fields() or {}
    if not fields:
        raise ValueError("Template has no form fields")
    logger.info(f"Template has {len(fields)} form fields")

    writer = PdfWriter(clone_from=reader)
    values = _current_values(fields)
    wanted = resolve_field_values(fields, project)
    values.update(wanted)

    filled: List[str] = []
    for name, value in values.items():
        try:
            for page in writer.pages:
                writer.update_page_form_field_values(
                    page, {name: value}, auto_regenerate=False, flatten=True
                )
        except Exception as e:
            logger.warning(f"Could not set template field '{name}': {str(e)}")
            continue
        if name in wanted:
            filled.append(name)

    try:
        _remove_form(writer)
    except Exception as e:
        logger.warning(f"Could not flatten template form, keeping it as-is: {str(e)}")

    out = io.BytesIO()
    writer.write(out)
    logger.info(f"Filled {len(filled)} template fields")
    return TemplateCover(content=out.getvalue(), page_count=len(writer.pages), filled_fields=tuple(filled))


# ---------- Acquisition --------------------------------------------------------

async def acquire_cover(
    project: ProjectData,
    available_names: Sequence[str],
    selected_names: Sequence[str],
    *,
    client: httpx.AsyncClient,
    settings: Settings,
    images: ImageLoader,
) -> CoverResult:
    """Template cover when possible, synthesized cover otherwise."""
    url = settings.template_url_for(project.product_type)
    reason = "No template configured"

    if url:
        try:
            logger.info(f"Fetching cover template from: {url}")
            template = await fetch_bytes(client, url)
            return fill_template(template, project)
        except DocumentResolutionError as e:
            reason = e.message
        except Exception as e:
            reason = f"Template unusable: {str(e)}"
        logger.warning(f"{reason}; falling back to synthesized cover page")

    logo = await images.get(settings.logo_url)
    content, pages = render_cover_pages(project, available_names, selected_names, logo=logo)
    return SynthesizedCover(content=content, page_count=pages, reason=reason)
