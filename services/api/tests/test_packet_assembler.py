"""
Tests for packet assembly.

Run with: pytest tests/test_packet_assembler.py -v
"""
import asyncio
import base64
import io

import httpx
import pytest
from pypdf import PdfReader, PdfWriter

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import CHECKED_APPEARANCE, b64, make_fillable_template, make_pdf
from core.cover_template import (
    SynthesizedCover,
    TemplateCover,
    acquire_cover,
    fill_template,
    resolve_field_values,
)
from core.document_source import ImageLoader, decode_inline, resolve_url
from core.errors import DocumentResolutionError
from core.packet_assembler import assemble_packet, open_document
from core.page_stamp import stamp_page_numbers
from schemas.packet import GeneratePacketRequest, ProjectData

TEMPLATE_FIELDS = ["Submitted To", "projectName", "Project Number", "Prepared By", "PhoneEmail", "Date"]


def remote_files():
    return {
        "/public/TDS%20Sheet.pdf": make_pdf(3, "Remote"),
        "/templates/cover.pdf": make_fillable_template(TEMPLATE_FIELDS),
        "/templates/flat.pdf": make_pdf(1, "Flat"),
        "/public/notpdf.pdf": b"<html><body>Not found</body></html>",
    }


def mock_handler(requests=None):
    files = remote_files()

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(str(request.url))
        content = files.get(request.url.raw_path.decode())
        if content is None:
            return httpx.Response(404, content=b"missing")
        return httpx.Response(200, content=content)

    return handler


def run_assembly(payload, settings, requests=None):
    async def go():
        transport = httpx.MockTransport(mock_handler(requests))
        async with httpx.AsyncClient(transport=transport) as client:
            request = GeneratePacketRequest.model_validate(payload)
            return await assemble_packet(request, client=client, settings=settings)
    return asyncio.run(go())


def payload(documents, **project):
    return {"projectData": {"projectName": "Tower 5", **project}, "documents": documents}


def reader_for(packet) -> PdfReader:
    return PdfReader(io.BytesIO(packet.content))


def page_text(packet, page_number: int) -> str:
    return reader_for(packet).pages[page_number - 1].extract_text() or ""


def drawn_appearances(page) -> list:
    """Data of every form XObject the page content actually draws."""
    content = page.get_contents().get_data()
    resources = page["/Resources"]
    xobjects = resources["/XObject"] if "/XObject" in resources else {}
    return [
        xobjects[name].get_object().get_data()
        for name in xobjects
        if f"{name} Do".encode() in content
    ]


def encrypted_pdf(user_password: str) -> bytes:
    writer = PdfWriter(clone_from=PdfReader(io.BytesIO(make_pdf(2, "Locked"))))
    writer.encrypt(user_password=user_password, owner_password="owner", algorithm="RC4-128")
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


class TestPageLayout:
    """Page order and count invariants."""

    def test_no_documents(self, offline_settings):
        """Cover and product info only."""
        packet = run_assembly(payload([]), offline_settings)
        assert packet.cover_source == "synthesized"
        assert packet.cover_pages == 1
        assert 1 <= packet.info_pages <= 2
        assert packet.page_count == packet.cover_pages + packet.info_pages
        assert packet.sections == []
        assert len(reader_for(packet).pages) == packet.page_count

    def test_two_documents(self, offline_settings):
        packet = run_assembly(payload([
            {"id": "a", "name": "Technical Data Sheet", "fileData": b64(make_pdf(2, "A"))},
            {"id": "b", "name": "Limited Warranty", "fileData": b64(make_pdf(3, "B"))},
        ]), offline_settings)

        prefix = packet.cover_pages + packet.info_pages
        assert packet.page_count == prefix + (1 + 2) + (1 + 3)
        assert len(reader_for(packet).pages) == packet.page_count

        first, second = packet.sections
        assert first.divider_page == prefix + 1
        assert first.content_pages == 2
        assert second.divider_page == prefix + 4
        assert second.content_pages == 3
        assert "Page {}".format(second.divider_page) in page_text(packet, second.divider_page)
        assert "B page 1" in page_text(packet, second.divider_page + 1)

    def test_explicit_order(self, offline_settings):
        packet = run_assembly(payload([
            {"id": "a", "name": "Second", "order": 2, "fileData": b64(make_pdf(1))},
            {"id": "b", "name": "First", "order": 1, "fileData": b64(make_pdf(1))},
        ]), offline_settings)
        assert [s.name for s in packet.sections] == ["First", "Second"]

    def test_data_url_accepted(self, offline_settings):
        data_url = "data:application/pdf;base64," + b64(make_pdf(1))
        packet = run_assembly(payload([{"id": "a", "name": "Inline", "fileData": data_url}]), offline_settings)
        assert packet.sections[0].content_pages == 1
        assert packet.sections[0].error is None


class TestPageNumbers:

    def test_last_page_carries_total(self, offline_settings):
        packet = run_assembly(payload([
            {"id": "a", "name": "Doc", "fileData": b64(make_pdf(2, "Body"))},
        ]), offline_settings)
        last = page_text(packet, packet.page_count)
        assert str(packet.page_count) in last

    def test_stamp_on_blank_pages(self):
        """Each page carries exactly its own number."""
        writer = PdfWriter()
        for _ in range(3):
            writer.add_blank_page(612, 792)
        writer.add_blank_page(842, 595)

        assert stamp_page_numbers(writer) == 4
        out = io.BytesIO()
        writer.write(out)
        reader = PdfReader(io.BytesIO(out.getvalue()))
        assert [p.extract_text().strip() for p in reader.pages] == ["1", "2", "3", "4"]

    def test_stamp_empty_writer(self):
        assert stamp_page_numbers(PdfWriter()) == 0

    def test_rotated_and_offset_pages(self, offline_settings):
        source = PdfWriter(clone_from=PdfReader(io.BytesIO(make_pdf(2, "Turned"))))
        source.pages[0].rotate(90)
        source.pages[1].mediabox.lower_left = (20, 30)
        out = io.BytesIO()
        source.write(out)

        packet = run_assembly(payload([{"id": "a", "name": "Turned", "fileData": b64(out.getvalue())}]), offline_settings)
        reader = reader_for(packet)
        assert len(reader.pages) == packet.page_count
        assert all(page.rotation % 360 == 0 for page in reader.pages)


class TestDocumentFailures:
    """A bad document becomes one error page; assembly continues."""

    def test_invalid_base64(self, offline_settings):
        packet = run_assembly(payload([
            {"id": "a", "name": "Broken", "fileData": "%%%not-base64%%%"},
            {"id": "b", "name": "Fine", "fileData": b64(make_pdf(2))},
        ]), offline_settings)
        broken, fine = packet.sections
        assert broken.error is not None
        assert broken.content_pages == 0
        assert broken.error_pages == 1
        assert "DOCUMENT ERROR" in page_text(packet, broken.divider_page + 1)
        assert fine.divider_page == broken.divider_page + 2
        assert fine.content_pages == 2
        assert packet.page_count == packet.cover_pages + packet.info_pages + 2 + 3

    def test_missing_source(self, offline_settings):
        packet = run_assembly(payload([{"id": "a", "name": "Nothing"}]), offline_settings)
        assert packet.sections[0].error_pages == 1

    def test_http_error(self, offline_settings):
        packet = run_assembly(payload([{"id": "a", "name": "Gone", "url": "missing.pdf"}]), offline_settings)
        section = packet.sections[0]
        assert "404" in section.error
        assert section.total_pages == 2

    def test_not_a_pdf(self, offline_settings):
        packet = run_assembly(payload([{"id": "a", "name": "Html", "url": "notpdf.pdf"}]), offline_settings)
        assert packet.sections[0].error == "Document is not a PDF"

    def test_garbage_after_signature(self, offline_settings):
        content = b"%PDF-1.7\n" + b"garbage " * 300
        packet = run_assembly(payload([{"id": "a", "name": "Corrupt", "fileData": b64(content)}]), offline_settings)
        assert packet.sections[0].error_pages == 1
        assert packet.page_count == packet.cover_pages + packet.info_pages + 2

    def test_password_protected(self, offline_settings):
        packet = run_assembly(payload([
            {"id": "a", "name": "Locked", "fileData": b64(encrypted_pdf("secret"))},
        ]), offline_settings)
        assert packet.sections[0].error == "Document is password protected"

    def test_empty_password_opened(self, offline_settings):
        packet = run_assembly(payload([
            {"id": "a", "name": "Owner only", "fileData": b64(encrypted_pdf(""))},
        ]), offline_settings)
        assert packet.sections[0].error is None
        assert packet.sections[0].content_pages == 2

    def test_failed_page_replaced(self, offline_settings, monkeypatch):
        """One unreadable page becomes one error page; later pages still follow."""
        original_add_page = PdfWriter.add_page

        def add_page(self, page, *args, **kwargs):
            if "Flaky page 2" in (page.extract_text() or ""):
                raise ValueError("broken content stream")
            return original_add_page(self, page, *args, **kwargs)

        monkeypatch.setattr(PdfWriter, "add_page", add_page)
        packet = run_assembly(payload([
            {"id": "a", "name": "Flaky", "fileData": b64(make_pdf(3, "Flaky"))},
        ]), offline_settings)

        section = packet.sections[0]
        assert section.error is None
        assert section.content_pages == 2
        assert section.error_pages == 1
        assert section.total_pages == 4
        assert packet.failed_sections == [section]
        assert packet.page_count == packet.cover_pages + packet.info_pages + 4

        first = section.divider_page + 1
        assert "Flaky page 1" in page_text(packet, first)
        error_text = page_text(packet, first + 1)
        assert "DOCUMENT ERROR" in error_text
        assert "Page 2 could not" in error_text
        assert "Flaky page 3" in page_text(packet, first + 2)


class TestRemoteDocuments:

    def test_relative_url_resolved(self, offline_settings):
        requests = []
        packet = run_assembly(
            payload([{"id": "a", "name": "TDS", "url": "/TDS Sheet.pdf"}]),
            offline_settings,
            requests=requests,
        )
        assert requests == ["https://docs.example.test/public/TDS%20Sheet.pdf"]
        assert packet.sections[0].content_pages == 3

    def test_inline_data_preferred(self, offline_settings):
        requests = []
        packet = run_assembly(
            payload([{"id": "a", "name": "TDS", "url": "TDS Sheet.pdf", "fileData": b64(make_pdf(1))}]),
            offline_settings,
            requests=requests,
        )
        assert requests == []
        assert packet.sections[0].content_pages == 1


class TestCoverTemplate:
    """Template cover with fallback to the synthesized cover."""

    def test_template_used_when_fillable(self, offline_settings):
        settings = offline_settings.model_copy(
            update={"structural_floor_template_url": "https://files.example.test/templates/cover.pdf"}
        )
        packet = run_assembly(payload([]), settings)
        assert packet.cover_source == "template"
        assert packet.cover_pages == 1

    def test_underlayment_without_template_synthesizes(self, offline_settings):
        settings = offline_settings.model_copy(
            update={"structural_floor_template_url": "https://files.example.test/templates/cover.pdf"}
        )
        packet = run_assembly(payload([], productType="underlayment"), settings)
        assert packet.cover_source == "synthesized"

    def test_unfillable_template_falls_back(self, offline_settings):
        settings = offline_settings.model_copy(
            update={"structural_floor_template_url": "https://files.example.test/templates/flat.pdf"}
        )
        packet = run_assembly(payload([]), settings)
        assert packet.cover_source == "synthesized"

    def test_missing_template_falls_back(self, offline_settings):
        async def go():
            transport = httpx.MockTransport(mock_handler())
            async with httpx.AsyncClient(transport=transport) as client:
                settings = offline_settings.model_copy(
                    update={"structural_floor_template_url": "https://files.example.test/templates/none.pdf"}
                )
                return await acquire_cover(
                    ProjectData(), [], [], client=client, settings=settings, images=ImageLoader(client)
                )
        cover = asyncio.run(go())
        assert isinstance(cover, SynthesizedCover)
        assert "404" in cover.reason

    def test_fill_and_flatten(self):
        project = ProjectData(project_name="Tower 5", submitted_to="ACME GC", phone_number="1", email_address="e")
        cover = fill_template(make_fillable_template(TEMPLATE_FIELDS), project)
        assert isinstance(cover, TemplateCover)
        assert cover.page_count == 1
        assert {"projectName", "Submitted To", "PhoneEmail"} <= set(cover.filled_fields)

        reader = PdfReader(io.BytesIO(cover.content))
        assert "/AcroForm" not in reader.trailer["/Root"]
        assert not reader.get_fields()
        text = reader.pages[0].extract_text()
        assert "Tower 5" in text
        assert "ACME GC" in text

    def test_checkboxes_flattened(self):
        """Only the checked box is drawn with its on appearance."""
        template = make_fillable_template(["projectName"], checkbox_names=["For Review", "For Approval"])
        project = ProjectData.model_validate({"projectName": "Tower 5", "status": {"forReview": True}})
        cover = fill_template(template, project)
        assert {"For Review", "For Approval"} <= set(cover.filled_fields)

        page = PdfReader(io.BytesIO(cover.content)).pages[0]
        annots = page.get("/Annots")
        assert annots is None or len(annots.get_object()) == 0
        drawn = drawn_appearances(page)
        assert sum(CHECKED_APPEARANCE in data for data in drawn) == 1

    def test_field_aliases(self):
        fields = {
            "projectName": {"/FT": "/Tx"},
            "Project Name": {"/FT": "/Btn"},
            "For Review": {"/FT": "/Btn", "/_States_": ["/Off", "/On"]},
            "forApproval": {"/FT": "/Btn", "/_States_": ["/Yes", "/Off"]},
            "fireAssembly03": {"/FT": "/Btn"},
        }
        project = ProjectData.model_validate({
            "projectName": "Tower 5",
            "status": {"forReview": True},
            "submittalType": {"fireAssembly03": True},
        })
        values = resolve_field_values(fields, project)
        assert values == {
            "projectName": "Tower 5",
            "For Review": "/On",
            "forApproval": "/Off",
            "fireAssembly03": "/Yes",
        }


class TestDocumentSource:

    def test_resolve_url(self):
        base = "https://host.test/public/"
        assert resolve_url("https://a.test/x.pdf", base) == "https://a.test/x.pdf"
        assert resolve_url("/docs/My File.pdf", base) == "https://host.test/public/docs/My%20File.pdf"
        assert resolve_url("x.pdf", "https://host.test/public") == "https://host.test/public/x.pdf"

    def test_decode_inline_line_wrapped(self):
        content = make_pdf(1)
        wrapped = base64.encodebytes(content).decode("ascii")
        assert "\n" in wrapped
        assert decode_inline(wrapped) == content
        assert decode_inline("data:application/pdf;base64," + wrapped) == content

    def test_decode_inline_rejects_garbage(self):
        with pytest.raises(DocumentResolutionError) as exc:
            decode_inline("not base64!!")
        assert "base64" in exc.value.message

    def test_open_document_rejects_non_pdf(self):
        with pytest.raises(DocumentResolutionError) as exc:
            open_document(b"%PDF-1.4 nonsense", "Bad")
        assert exc.value.document_name == "Bad"
