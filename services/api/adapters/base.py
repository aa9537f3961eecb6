"""
Document repository interface for the packet service.
Defines the contract that all storage backends must implement.
"""

from typing import Any, Dict, List, Optional, Protocol

from models import StoredDocument


class DocumentRepository(Protocol):
    """
    Protocol defining the interface for catalog document storage.

    Metadata and binary content are stored separately so listing the
    catalog never loads file contents.

    NOTE:
    - Misses raise HTTPException(404); bad input raises HTTPException(400).
    """

    def get_all(self) -> List[StoredDocument]:
        """Return every document, oldest first."""
        ...

    def get_by_product_type(self, product_type: str) -> List[StoredDocument]:
        """Return the documents of one product category."""
        ...

    def get_by_id(self, doc_id: str) -> StoredDocument:
        ...

    def get_file(self, doc_id: str) -> bytes:
        """
        Return the stored PDF bytes.

        Raises:
            HTTPException: 404 if the document or its content is missing.
        """
        ...

    def insert(self, doc: StoredDocument, content: bytes) -> StoredDocument:
        """
        Store metadata and content atomically.

        Args:
            doc: metadata; an empty id is replaced by a generated one
            content: PDF bytes

        Returns:
            The stored document (with its id and timestamps).
        """
        ...

    def update(self, doc_id: str, changes: Dict[str, Any]) -> StoredDocument:
        """Apply a partial metadata update. The id never changes."""
        ...

    def delete(self, doc_id: str) -> None:
        ...

    def export_base64(self, doc_id: str) -> str:
        """Stored content as a bare base64 string (no data: prefix)."""
        ...

    def count(self, product_type: Optional[str] = None) -> int:
        ...
