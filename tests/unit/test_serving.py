"""Unit tests for the serving layer."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from starlette.datastructures import UploadFile as StarletteUploadFile

from docqa.documents import DocumentCoordinator
from docqa.errors import GenerationTimeout
from docqa.generation import AnswerSynthesizer
from docqa.ingestion.chunker import TextChunker
from docqa.ingestion.loader import TEXT_MIME_TYPE
from docqa.serving.app import Services, create_app

CATS = b"Cats are mammals. Cats purr when content. Cats sleep most of the day."


@pytest.fixture()
def services(embedder, index, registry) -> Services:
    synthesizer = AnswerSynthesizer(
        FakeListChatModel(responses=["According to Source 1, cats are mammals."]), timeout=5
    )
    return Services(
        embedder=embedder,
        index=index,
        synthesizer=synthesizer,
        registry=registry,
        coordinator=DocumentCoordinator(
            registry, index, chunker=TextChunker(chunk_size=20, chunk_overlap=5)
        ),
    )


@pytest.fixture()
def client(services: Services) -> TestClient:
    return TestClient(create_app(services))


def _upload(client: TestClient, data: bytes = CATS, mime: str = TEXT_MIME_TYPE):
    return client.post("/api/upload", files={"file": ("cats.txt", data, mime)})


def test_root_lists_endpoints(client: TestClient) -> None:
    body = client.get("/").json()
    assert body["endpoints"]["query"] == "POST /api/query"


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["documents"] == 0
    assert body["checks"]["vector_store"] == "connected"


def test_health_degraded_when_store_down(client: TestClient, store) -> None:
    store.healthy = False
    body = client.get("/api/health").json()
    assert body["status"] == "degraded"
    assert body["checks"]["vector_store"] == "disconnected"


def test_upload_then_list(client: TestClient) -> None:
    response = _upload(client)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["document"]["status"] == "ready"
    assert body["document"]["original_name"] == "cats.txt"
    assert body["document"]["chunk_count"] >= 1

    listing = client.get("/api/documents").json()
    assert listing["count"] == 1
    assert listing["documents"][0]["id"] == body["document"]["id"]


def test_upload_unsupported_format(client: TestClient) -> None:
    response = _upload(client, b"\x89PNG", "image/png")
    assert response.status_code == 415
    assert response.json()["code"] == "UNSUPPORTED_FORMAT"


def test_upload_empty_document(client: TestClient) -> None:
    response = _upload(client, b"   ")
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Cannot chunk empty text",
        "code": "EMPTY_DOCUMENT",
    }


def test_query_returns_answer_and_sources(client: TestClient) -> None:
    _upload(client)
    response = client.post("/api/query", json={"question": "Are cats mammals?", "min_similarity": 0.1})
    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "According to Source 1, cats are mammals."
    assert body["sources"][0]["filename"] == "cats.txt"
    assert body["sources"][0]["similarity_score"] >= 0.1
    assert "processing_time_ms" in body


def test_query_without_documents_is_not_found(client: TestClient) -> None:
    response = client.post("/api/query", json={"question": "Anything?"})
    assert response.status_code == 404
    assert response.json()["code"] == "NO_RELEVANT_CONTEXT"


@pytest.mark.parametrize("question", ["", "   ", "x" * 1001])
def test_query_rejects_bad_questions(client: TestClient, question: str) -> None:
    response = client.post("/api/query", json={"question": question})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_QUESTION"


def test_query_timeout_maps_to_504(client: TestClient, services: Services) -> None:
    _upload(client)
    with patch.object(services.synthesizer, "answer", AsyncMock(side_effect=GenerationTimeout())):
        response = client.post("/api/query", json={"question": "Are cats mammals?", "min_similarity": 0.1})
    assert response.status_code == 504
    assert response.json()["code"] == "GENERATION_TIMEOUT"


def test_delete_document(client: TestClient, store) -> None:
    doc_id = _upload(client).json()["document"]["id"]
    response = client.delete(f"/api/documents/{doc_id}")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert store.records == {}
    assert client.get("/api/documents").json()["count"] == 0


def test_delete_unknown_document(client: TestClient) -> None:
    response = client.delete("/api/documents/missing")
    assert response.status_code == 404
    assert response.json()["code"] == "DOCUMENT_NOT_FOUND"


def test_unexpected_error_hides_details(services: Services) -> None:
    client = TestClient(create_app(services), raise_server_exceptions=False)
    with patch.object(services.index, "query", AsyncMock(side_effect=RuntimeError("secret"))):
        response = client.post("/api/query", json={"question": "Hello?"})
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "PROCESSING_ERROR"
    assert "details" not in body


def test_upload_accepts_content_type_parameters(client: TestClient) -> None:
    response = _upload(client, mime="text/plain; charset=utf-8")
    assert response.status_code == 200
    assert response.json()["document"]["mime_type"] == TEXT_MIME_TYPE


def test_upload_without_file(client: TestClient) -> None:
    response = client.post("/api/upload")
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "No file uploaded",
        "code": "EMPTY_DOCUMENT",
    }


def test_oversize_upload_rejected_before_reading(client: TestClient, services: Services) -> None:
    services.coordinator.max_file_size = 10
    with patch.object(StarletteUploadFile, "read", new_callable=AsyncMock) as read:
        response = _upload(client)
    assert response.status_code == 413
    assert response.json()["code"] == "FILE_TOO_LARGE"
    read.assert_not_awaited()
    assert client.get("/api/documents").json()["count"] == 0


@pytest.mark.parametrize("body", [{"question": 123}, {"question": None}, {}])
def test_query_with_non_string_question(client: TestClient, body: dict) -> None:
    response = client.post("/api/query", json=body)
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Question is required and must be a string",
        "code": "INVALID_QUESTION",
    }


def test_query_with_invalid_option(client: TestClient) -> None:
    response = client.post("/api/query", json={"question": "Cats?", "top_k": 0})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "INVALID_INPUT"
