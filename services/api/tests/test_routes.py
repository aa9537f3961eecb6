"""
Tests for the HTTP surface.

Run with: pytest tests/test_routes.py -v
"""
import base64

import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import b64, make_pdf
from adapters.sqlite import SqliteDocumentRepository
from main import app
from routers.documents import get_repository
from routers.packets import packet_filename


@pytest.fixture
def client():
    repo = SqliteDocumentRepository.from_url("sqlite://")
    app.dependency_overrides[get_repository] = lambda: repo
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def upload(client, filename="MAXTERRA TDS.pdf", content=None, product_type="structural-floor"):
    content = content if content is not None else make_pdf(3)
    return client.post(
        "/documents",
        files={"file": (filename, content, "application/pdf")},
        data={"product_type": product_type},
    )


class TestGeneratePacket:

    def test_returns_pdf(self, client):
        body = {
            "projectData": {"projectName": "Tower 5 / Phase 2", "date": "2025-10-01"},
            "documents": [{"id": "a", "name": "Technical Data Sheet", "fileData": b64(make_pdf(2))}],
        }
        resp = client.post("/generate-packet", json=body)

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")
        assert 'filename="Tower_5___Phase_2_Packet.pdf"' in resp.headers["content-disposition"]
        assert int(resp.headers["x-packet-page-count"]) >= 1 + 1 + 3
        assert "x-request-id" in resp.headers

    def test_bad_documents_do_not_fail_request(self, client):
        body = {
            "projectData": {},
            "documents": [{"id": "a", "name": "Broken", "fileData": "!!!"}],
        }
        resp = client.post("/generate-packet", json=body)
        assert resp.status_code == 200

    def test_missing_documents_array(self, client):
        resp = client.post("/generate-packet", json={"projectData": {}})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"
        assert "documents" in resp.json()["details"]

    def test_invalid_json(self, client):
        resp = client.post(
            "/generate-packet",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert set(resp.json()) == {"error", "details"}

    def test_fatal_error_shape(self, client, monkeypatch):
        from core.errors import PacketAssemblyError
        import routers.packets as packets

        async def explode(*args, **kwargs):
            raise PacketAssemblyError("disk full")

        monkeypatch.setattr(packets, "assemble_packet", explode)
        resp = client.post("/generate-packet", json={"projectData": {}, "documents": []})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate packet", "details": "disk full"}

    def test_filename(self):
        assert packet_filename("Tower 5") == "Tower_5_Packet.pdf"
        assert packet_filename("") == "Submittal_Packet.pdf"


class TestSubmittalTypes:

    def test_classify(self, client):
        resp = client.post("/submittal-types", json={"documents": [
            {"id": "a", "name": "Fire Assembly 02"},
            {"id": "b", "name": "x", "type": "msds"},
        ]})
        assert resp.status_code == 200
        flags = resp.json()
        assert flags["fireAssembly"] is True
        assert flags["fireAssembly02"] is True
        assert flags["msds"] is True
        assert flags["tds"] is False


class TestDocumentsApi:

    def test_upload_and_fetch(self, client):
        resp = upload(client, "MAXTERRA Warranty.pdf", product_type="underlayment")
        assert resp.status_code == 201
        doc = resp.json()
        assert doc["type"] == "Warranty"
        assert doc["name"] == "Limited Warranty"
        assert doc["productType"] == "underlayment"
        assert doc["products"] == ["1/2-in (13mm)", "5/8-in (16mm)"]

        assert client.get(f"/documents/{doc['id']}").json() == doc
        listed = client.get("/documents", params={"product_type": "underlayment"}).json()
        assert [d["id"] for d in listed] == [doc["id"]]
        assert client.get("/documents", params={"product_type": "structural-floor"}).json() == []

    def test_upload_rejects_non_pdf(self, client):
        resp = upload(client, "notes.pdf", content=b"hello" * 500)
        assert resp.status_code == 400

    def test_patch_and_delete(self, client):
        doc = upload(client).json()
        resp = client.patch(f"/documents/{doc['id']}", json={"name": "Renamed", "required": True})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Renamed"
        assert resp.json()["id"] == doc["id"]

        assert client.delete(f"/documents/{doc['id']}").status_code == 200
        assert client.get(f"/documents/{doc['id']}").status_code == 404

    def test_base64_file_and_check(self, client):
        content = make_pdf(3)
        doc = upload(client, content=content).json()

        exported = client.get(f"/documents/{doc['id']}/base64").json()
        assert exported["id"] == doc["id"]
        assert base64.b64decode(exported["fileData"]) == content

        file_resp = client.get(f"/documents/{doc['id']}/file")
        assert file_resp.status_code == 200
        assert file_resp.content == content

        check = client.get(f"/documents/{doc['id']}/check").json()
        assert check["is_accessible"] is True
        assert check["page_count"] == 3

    def test_exported_document_merges(self, client):
        """Catalog export feeds straight into a packet request."""
        doc = upload(client, content=make_pdf(2)).json()
        exported = client.get(f"/documents/{doc['id']}/base64").json()

        resp = client.post("/generate-packet", json={
            "projectData": {"projectName": "Roundtrip"},
            "documents": [{"id": doc["id"], "name": doc["name"], "fileData": exported["fileData"]}],
        })
        assert resp.status_code == 200

    def test_unknown_document(self, client):
        assert client.get("/documents/missing").status_code == 404
        assert client.get("/documents/missing/base64").status_code == 404


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"
