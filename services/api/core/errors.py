# services/api/core/errors.py
"""
Domain exceptions for packet assembly.

DocumentResolutionError is recoverable: the assembler turns it into an
error page and moves on. PacketAssemblyError is fatal for the request.
"""


class DocumentResolutionError(Exception):
    """A document's bytes could not be obtained or opened as a PDF."""

    def __init__(self, message: str, document_name: str = ""):
        super().__init__(message)
        self.message = message
        self.document_name = document_name


class PacketAssemblyError(Exception):
    """The packet as a whole could not be produced."""
