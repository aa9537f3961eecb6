# services/api/routers/packets.py
from __future__ import annotations

import io
import logging
import re
from functools import lru_cache
from typing import Annotated, Optional, Tuple

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse, StreamingResponse

from core.errors import PacketAssemblyError
from core.packet_assembler import assemble_packet
from core.submittal_types import TriggerRule, classify_submittal_types, load_triggers
from schemas.packet import ClassifyRequest, GeneratePacketRequest
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["packets"])


@lru_cache(maxsize=4)
def _triggers_for(path: Optional[str]) -> Tuple[TriggerRule, ...]:
    return load_triggers(path)


def get_triggers() -> Tuple[TriggerRule, ...]:
    return _triggers_for(get_settings().submittal_triggers_path)


def packet_filename(project_name: str) -> str:
    """Download name: non-alphanumerics become underscores."""
    base = re.sub(r"[^a-zA-Z0-9]", "_", project_name or "") or "Submittal"
    return f"{base}_Packet.pdf"


@router.post("/generate-packet")
async def generate_packet(body: Annotated[GeneratePacketRequest, Body(...)]):
    """
    Merge cover, product info and the requested documents into one PDF.

    Per-document problems never fail the request; they show up as error
    pages inside the packet.
    """
    try:
        packet = await assemble_packet(body, settings=get_settings(), triggers=get_triggers())
    except PacketAssemblyError as e:
        logger.error(f"Error generating packet: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate packet", "details": str(e)},
        )
    except Exception as e:
        logger.error(f"Error generating packet: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate packet", "details": str(e) or type(e).__name__},
        )

    for section in packet.failed_sections:
        logger.warning(f"Section '{section.name}' has {section.error_pages} error page(s): {section.error}")

    filename = packet_filename(body.project_data.project_name)
    return StreamingResponse(
        io.BytesIO(packet.content),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(packet.content)),
            "X-Packet-Page-Count": str(packet.page_count),
        },
    )


@router.post("/submittal-types")
async def submittal_types(body: Annotated[ClassifyRequest, Body(...)]):
    """Submittal type flags implied by a document selection (camelCase keys)."""
    flags = classify_submittal_types(body.documents, get_triggers())
    return flags.to_wire()
