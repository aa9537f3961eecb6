# services/api/core/packet_assembler.py
"""
Packet assembly: one request in, one merged PDF out.

Page order:
  cover page(s) -> product info page(s) -> per document: divider + pages
  (or a single error page) -> page numbers stamped over everything.

Failures are contained at the smallest unit possible: a bad page becomes an
error page, a bad document becomes an error page, a bad template becomes a
synthesized cover. Only invalid input and serialization errors are fatal.
"""
from __future__ import annotations

import io
import logging
from typing import Optional, Sequence

import httpx
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from core.cover_template import TemplateCover, acquire_cover
from core.document_source import ImageLoader, load_document_bytes, make_client
from core.errors import DocumentResolutionError, PacketAssemblyError
from core.page_stamp import stamp_page_numbers
from core.pdf_pages import render_divider_page, render_error_page
from core.product_info import render_product_info
from core.submittal_types import DEFAULT_TRIGGERS, TriggerRule, classify_submittal_types
from models import AssembledPacket, SectionReport
from schemas.packet import DocumentRequest, GeneratePacketRequest
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def _append_pdf(writer: PdfWriter, content: bytes) -> int:
    """Append every page of an in-house generated PDF. Returns pages added."""
    reader = PdfReader(io.BytesIO(content))
    for page in reader.pages:
        writer.add_page(page)
    return len(reader.pages)


def open_document(content: bytes, name: str = "") -> PdfReader:
    """
    Open document bytes for page copying.

    Encrypted files are tried with the empty password; anything else
    raises DocumentResolutionError.
    """
    try:
        reader = PdfReader(io.BytesIO(content))
        if reader.is_encrypted:
            try:
                opened = reader.decrypt("")
            except (PyPdfError, NotImplementedError) as e:
                raise DocumentResolutionError(f"Document is encrypted ({e})", name) from e
            if not opened:
                raise DocumentResolutionError("Document is password protected", name)
        page_count = len(reader.pages)
    except DocumentResolutionError:
        raise
    except Exception as e:
        raise DocumentResolutionError(f"Document could not be loaded ({str(e)})", name) from e

    if page_count == 0:
        raise DocumentResolutionError("Document has no pages", name)
    return reader


class _PacketBuilder:
    """Owns the output writer and the running page count."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.settings = settings
        self.images = ImageLoader(client)
        self.writer = PdfWriter()
        self.sections: list[SectionReport] = []

    @property
    def page_count(self) -> int:
        return len(self.writer.pages)

    def add_error_page(self, document_name: str, message: str) -> None:
        _append_pdf(self.writer, render_error_page(document_name, message))

    async def add_document(self, doc: DocumentRequest) -> SectionReport:
        logo = await self.images.get(self.settings.logo_white_url)
        divider_page = self.page_count + 1
        _append_pdf(self.writer, render_divider_page(doc.name, divider_page, logo=logo))
        report = SectionReport(name=doc.name, divider_page=divider_page)

        try:
            content = await load_document_bytes(doc, self.client, self.settings)
            reader = open_document(content, doc.name)
        except DocumentResolutionError as e:
            logger.warning(f"Replacing '{doc.name}' with an error page: {e.message}")
            self.add_error_page(doc.name, e.message)
            report.error = e.message
            report.error_pages = 1
            return report

        for index in range(len(reader.pages)):
            try:
                self.writer.add_page(reader.pages[index])
                report.content_pages += 1
            except Exception as e:
                logger.warning(f"Page {index + 1} of '{doc.name}' could not be processed: {str(e)}")
                self.add_error_page(doc.name, f"Page {index + 1} could not be processed")
                report.error_pages += 1

        logger.info(
            f"Added '{doc.name}': {report.total_pages} pages "
            f"({report.content_pages} content, {report.error_pages} error)"
        )
        return report

    def serialize(self) -> bytes:
        try:
            stamp_page_numbers(self.writer)
            out = io.BytesIO()
            self.writer.write(out)
        except Exception as e:
            raise PacketAssemblyError(f"Could not write packet: {str(e)}") from e
        return out.getvalue()


async def assemble_packet(
    request: GeneratePacketRequest,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
    triggers: Sequence[TriggerRule] = DEFAULT_TRIGGERS,
) -> AssembledPacket:
    """
    Build the complete packet for a request.

    Args:
        request: validated generation request
        client: shared HTTP client (one is created and closed here if omitted)
        settings: defaults to get_settings()
        triggers: submittal type trigger table

    Returns:
        AssembledPacket with the PDF bytes and a per-document report

    Raises:
        PacketAssemblyError: the packet could not be serialized
    """
    settings = settings or get_settings()
    if client is None:
        async with make_client(settings) as own_client:
            return await _assemble(request, own_client, settings, triggers)
    return await _assemble(request, client, settings, triggers)


async def _assemble(
    request: GeneratePacketRequest,
    client: httpx.AsyncClient,
    settings: Settings,
    triggers: Sequence[TriggerRule],
) -> AssembledPacket:
    project = request.project_data
    documents = request.ordered_documents()
    logger.info(
        f"Assembling packet '{project.project_name}' ({project.product_type}) with {len(documents)} documents"
    )

    # Caller flags plus whatever the document names imply
    classified = classify_submittal_types(documents, triggers)
    project = project.model_copy(update={"submittal_type": project.submittal_type.merged_with(classified)})

    builder = _PacketBuilder(client, settings)

    # 1-2) Cover page(s)
    cover = await acquire_cover(
        project,
        request.available_names(),
        request.selected_names(),
        client=client,
        settings=settings,
        images=builder.images,
    )
    cover_pages = _append_pdf(builder.writer, cover.content)
    logger.info(f"Cover: {cover.source}, {cover_pages} page(s)")

    # 3) Product information
    info_content, _ = render_product_info(project.product_type)
    info_pages = _append_pdf(builder.writer, info_content)

    # 4) Documents, in order
    for doc in documents:
        builder.sections.append(await builder.add_document(doc))

    # 5-6) Page numbers and bytes
    content = builder.serialize()
    packet = AssembledPacket(
        content=content,
        page_count=builder.page_count,
        cover_pages=cover_pages,
        info_pages=info_pages,
        cover_source="template" if isinstance(cover, TemplateCover) else "synthesized",
        sections=builder.sections,
    )
    logger.info(f"Packet generated successfully: {packet.page_count} pages, {len(content)} bytes")
    return packet
