# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import base64
import json
import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from datetime import datetime
from uuid import uuid4

from models import StoredDocument
from models.converters import document_from_row

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        engine = create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("filename", String, nullable=False, default=""),
    Column("url", Text, nullable=False, default=""),
    Column("size", Integer, nullable=False, default=0),
    Column("type", String, nullable=False, default="TDS"),
    Column("required", Boolean, nullable=False, default=False),
    Column("products", Text, nullable=False, default="[]"),  # JSON list
    Column("product_type", String, nullable=False, default="structural-floor"),
    Column("created_at", DateTime, nullable=False, default=datetime.utcnow),
    Column("updated_at", DateTime, nullable=False, default=datetime.utcnow),
)

document_files = Table(
    "document_files",
    metadata,
    Column("id", String, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True),
    Column("blob", LargeBinary, nullable=False),
)

Index("idx_documents_product_type", documents.c.product_type)

_UPDATABLE = {"name", "description", "url", "type", "required", "products", "product_type"}

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteDocumentRepository:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/packets.db") -> "SqliteDocumentRepository":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def _row_to_doc(self, row) -> StoredDocument:
        return document_from_row(dict(row))

    def get_all(self) -> List[StoredDocument]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(documents).order_by(documents.c.created_at.asc(), documents.c.id.asc())
            ).mappings().all()
            return [self._row_to_doc(r) for r in rows]

    def get_by_product_type(self, product_type: str) -> List[StoredDocument]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(documents)
                .where(documents.c.product_type == product_type)
                .order_by(documents.c.created_at.asc(), documents.c.id.asc())
            ).mappings().all()
            return [self._row_to_doc(r) for r in rows]

    def get_by_id(self, doc_id: str) -> StoredDocument:
        with self.engine.begin() as conn:
            row = conn.execute(select(documents).where(documents.c.id == doc_id)).mappings().first()
            if not row:
                raise HTTPException(status_code=404, detail="Document not found")
            return self._row_to_doc(row)

    def get_file(self, doc_id: str) -> bytes:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(document_files.c.blob).where(document_files.c.id == doc_id)
            ).first()
            if not row:
                raise HTTPException(status_code=404, detail="Document file not found")
            return bytes(row.blob)

    def insert(self, doc: StoredDocument, content: bytes) -> StoredDocument:
        doc_id = doc.id or f"doc-{uuid4().hex[:12]}"
        now = datetime.utcnow()
        with self.engine.begin() as conn:
            exists = conn.execute(select(documents.c.id).where(documents.c.id == doc_id)).first()
            if exists:
                raise HTTPException(status_code=409, detail=f"Document {doc_id} already exists")
            conn.execute(
                insert(documents).values(
                    id=doc_id,
                    name=doc.name,
                    description=doc.description or "",
                    filename=doc.filename or "",
                    url=doc.url or "",
                    size=len(content),
                    type=doc.type or "TDS",
                    required=bool(doc.required),
                    products=json.dumps(list(doc.products)),
                    product_type=doc.product_type,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.execute(insert(document_files).values(id=doc_id, blob=content))
        return self.get_by_id(doc_id)

    def update(self, doc_id: str, changes: Dict[str, Any]) -> StoredDocument:
        allowed = {k: v for k, v in changes.items() if k in _UPDATABLE and v is not None}
        if not allowed:
            raise HTTPException(status_code=400, detail="No updatable fields")
        if "products" in allowed:
            allowed["products"] = json.dumps(list(allowed["products"]))

        with self.engine.begin() as conn:
            res = conn.execute(
                update(documents)
                .where(documents.c.id == doc_id)
                .values(**allowed, updated_at=datetime.utcnow())
            )
            if res.rowcount == 0:
                raise HTTPException(status_code=404, detail="Document not found")
        return self.get_by_id(doc_id)

    def delete(self, doc_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(document_files).where(document_files.c.id == doc_id))
            res = conn.execute(delete(documents).where(documents.c.id == doc_id))
            if res.rowcount == 0:
                raise HTTPException(status_code=404, detail="Document not found")

    def export_base64(self, doc_id: str) -> str:
        return base64.b64encode(self.get_file(doc_id)).decode("ascii")

    def count(self, product_type: Optional[str] = None) -> int:
        q = select(func.count()).select_from(documents)
        if product_type:
            q = q.where(documents.c.product_type == product_type)
        with self.engine.begin() as conn:
            return int(conn.execute(q).scalar_one())
