"""FastAPI application exposing document upload and question answering."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docqa.config import settings
from docqa.documents import Document, DocumentCoordinator, DocumentRegistry
from docqa.errors import DocQAError, EmptyDocument, InvalidInput, InvalidQuestion, ProcessingError
from docqa.generation import AnswerSynthesizer
from docqa.ingestion.embedder import EmbeddingGateway
from docqa.retrieval import Citation, RetrievalIndex

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Long-lived collaborators shared by all requests."""

    embedder: EmbeddingGateway
    index: RetrievalIndex
    synthesizer: AnswerSynthesizer
    registry: DocumentRegistry
    coordinator: DocumentCoordinator


def build_services() -> Services:
    """Wire the default Chroma / OpenAI-compatible stack from settings."""
    from docqa.retrieval.chroma_store import ChromaVectorStore

    embedder = EmbeddingGateway()
    index = RetrievalIndex(ChromaVectorStore(), embedder)
    registry = DocumentRegistry()
    return Services(
        embedder=embedder,
        index=index,
        synthesizer=AnswerSynthesizer(),
        registry=registry,
        coordinator=DocumentCoordinator(registry, index),
    )


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question from the user."""

    question: str
    top_k: int | None = Field(default=None, gt=0)
    min_similarity: float | None = Field(default=None, ge=0.0, le=1.0)


class QueryResponse(BaseModel):
    """Answer with the sources it was grounded on."""

    success: bool = True
    answer: str
    sources: list[Citation] = []
    processing_time_ms: int


class UploadResponse(BaseModel):
    success: bool = True
    document: Document
    message: str = "File processed successfully"


class DocumentListResponse(BaseModel):
    success: bool = True
    documents: list[Document]
    count: int


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Document deleted successfully"


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    checks: dict[str, Any]


def _services(request: Request) -> Services:
    return request.app.state.services


def _validate_question(question: str) -> str:
    question = question.strip()
    if not question:
        raise InvalidQuestion("Question cannot be empty")
    if len(question) > settings.max_question_length:
        raise InvalidQuestion(
            f"Question is too long (max {settings.max_question_length} characters)"
        )
    return question


def _error_response(exc: DocQAError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code},
    )


def _translate_validation_error(exc: RequestValidationError) -> DocQAError:
    """Map a schema validation failure onto the domain error for its field."""
    errors = exc.errors()
    for error in errors:
        field = str((error.get("loc") or ("",))[-1])
        if field == "question":
            return InvalidQuestion("Question is required and must be a string")
        if field == "file":
            return EmptyDocument("No file uploaded")
    return InvalidInput(errors[0].get("msg") if errors else None)


def create_app(services: Services | None = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    services:
        Pre-built collaborators (tests inject fakes here).  When *None*
        they are wired from settings at start-up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.basicConfig(level=settings.log_level)
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services()
        logger.info("LLM model: %s", settings.llm_model_name)
        yield

    app = FastAPI(
        title="Document QA API",
        version="0.1.0",
        description="Upload documents and ask questions answered from their content.",
        lifespan=lifespan,
    )
    app.state.services = services

    # ── Error handlers ────────────────────────────────────────────────
    @app.exception_handler(DocQAError)
    async def handle_domain_error(request: Request, exc: DocQAError) -> JSONResponse:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = _translate_validation_error(exc)
        logger.warning("%s on %s: %s", error.code, request.url.path, error.message)
        return _error_response(error)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        content: dict[str, Any] = {
            "success": False,
            "error": "Internal server error",
            "code": ProcessingError.code,
        }
        if settings.debug:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "message": "Document QA API",
            "version": app.version,
            "endpoints": {
                "health": "GET /api/health",
                "upload": "POST /api/upload",
                "query": "POST /api/query",
                "documents": "GET /api/documents",
                "deleteDocument": "DELETE /api/documents/{id}",
            },
        }

    @app.get("/api/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Liveness probe reporting each collaborator."""
        svc = _services(request)
        embedding_ok, llm_ok, store_ok = await asyncio.gather(
            svc.embedder.health_check(),
            svc.synthesizer.health_check(),
            svc.index.health_check(),
        )
        return HealthResponse(
            status="healthy" if embedding_ok and llm_ok and store_ok else "degraded",
            timestamp=datetime.now(timezone.utc),
            checks={
                "embedding": "connected" if embedding_ok else "disconnected",
                "llm": "ready" if llm_ok else "not ready",
                "vector_store": "connected" if store_ok else "disconnected",
                "documents": len(svc.registry),
            },
        )

    @app.post("/api/upload", response_model=UploadResponse)
    async def upload(request: Request, file: UploadFile = File(...)) -> UploadResponse:
        """Extract, chunk, and index an uploaded file."""
        coordinator = _services(request).coordinator
        if file.size is not None:
            coordinator.check_size(file.size)
        data = await file.read()
        document = await coordinator.ingest(
            data,
            file.content_type or "application/octet-stream",
            file.filename or "upload",
        )
        return UploadResponse(document=document)

    @app.post("/api/query", response_model=QueryResponse)
    async def query(request: Request, body: QueryRequest) -> QueryResponse:
        """Retrieve relevant chunks and synthesize a cited answer."""
        svc = _services(request)
        question = _validate_question(body.question)
        logger.info("Query received: %r", question)

        citations = await svc.index.query(
            question, top_k=body.top_k, min_similarity=body.min_similarity
        )
        answer = await svc.synthesizer.answer(question, citations)
        return QueryResponse(
            answer=answer.text,
            sources=answer.citations,
            processing_time_ms=answer.processing_time_ms,
        )

    @app.get("/api/documents", response_model=DocumentListResponse)
    async def list_documents(request: Request) -> DocumentListResponse:
        documents = _services(request).coordinator.list()
        return DocumentListResponse(documents=documents, count=len(documents))

    @app.delete("/api/documents/{document_id}", response_model=DeleteResponse)
    async def delete_document(request: Request, document_id: str) -> DeleteResponse:
        await _services(request).coordinator.remove(document_id)
        return DeleteResponse()

    return app


app = create_app()
