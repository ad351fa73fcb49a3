"""FastAPI application exposing DocChat services."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence
from uuid import uuid4

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from docchat.api.schemas import (
    ChatListResponse,
    ChatRequest,
    ChatResponse,
    ChatTranscript,
    DeleteAllResponse,
    DocumentListResponse,
    DocumentRecord,
    DocumentUploadResponse,
    IndexStatsResponse,
    SaveChatRequest,
    SaveChatResponse,
)
from docchat.config import Settings, get_settings
from docchat.dependencies import AppDependencies, build_dependencies
from docchat.errors import QuotaExhausted, RetrievalError, TransportError, UnexpectedResponse
from docchat.ingestion import DuplicateDocumentError, IngestionError, UnsupportedFileTypeError
from docchat.metrics.observability import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from docchat.services import ChatHistoryService, DocumentAdminService, RetrievalOrchestrator
from docchat.storage import DocumentNotFoundError

# Upstream failures: (exception type, status code, client-facing detail)
_UPSTREAM_ERRORS: Sequence[tuple[type[Exception], int, str]] = (
    (QuotaExhausted, status.HTTP_503_SERVICE_UNAVAILABLE, "Model quota exhausted for all credentials"),
    (TransportError, status.HTTP_502_BAD_GATEWAY, "Model endpoint unreachable"),
    (UnexpectedResponse, status.HTTP_502_BAD_GATEWAY, "Unexpected response from model endpoint"),
    (RetrievalError, status.HTTP_502_BAD_GATEWAY, "Vector index unavailable"),
)


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or build_dependencies(settings)

    configure_logging()
    logger = get_logger("api")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if deps.model_client is not None:
            await deps.model_client.aclose()

    app = FastAPI(title="DocChat API", version="0.1.0", lifespan=lifespan)
    app.state.dependencies = deps

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def require_api_key(request: Request) -> None:
        expected = settings.api_key
        if not expected:
            return
        provided = request.headers.get("X-API-Key")
        if provided != expected:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail, "correlation_id": correlation_id},
        )

    for error_type, status_code, detail in _UPSTREAM_ERRORS:

        async def handle_upstream_error(
            request: Request,
            exc: Exception,
            _status_code: int = status_code,
            _detail: str = detail,
        ) -> JSONResponse:
            logger.error("pipeline.error", error=type(exc).__name__, detail=str(exc))
            return _error_response(request, _status_code, _detail)

        app.add_exception_handler(error_type, handle_upstream_error)

    @app.exception_handler(UnsupportedFileTypeError)
    async def handle_unsupported(request: Request, exc: UnsupportedFileTypeError) -> JSONResponse:
        return _error_response(request, status.HTTP_400_BAD_REQUEST, "Only .txt files are accepted.")

    @app.exception_handler(DuplicateDocumentError)
    async def handle_duplicate(request: Request, exc: DuplicateDocumentError) -> JSONResponse:
        return _error_response(request, status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(IngestionError)
    async def handle_ingestion_error(request: Request, exc: IngestionError) -> JSONResponse:
        logger.error("ingestion.error", detail=str(exc))
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(DocumentNotFoundError)
    async def handle_not_found(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
        return _error_response(request, status.HTTP_404_NOT_FOUND, f"Document not found: {exc.args[0]}")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled.error", detail=str(exc))
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_orchestrator(dep: AppDependencies = Depends(get_dependencies)) -> RetrievalOrchestrator:
        return dep.orchestrator

    def get_documents(dep: AppDependencies = Depends(get_dependencies)) -> DocumentAdminService:
        return dep.documents

    def get_chats(dep: AppDependencies = Depends(get_dependencies)) -> ChatHistoryService:
        return dep.chats

    @app.post("/chat", response_model=ChatResponse)
    async def chat(
        payload: ChatRequest,
        orchestrator: RetrievalOrchestrator = Depends(get_orchestrator),
    ) -> ChatResponse:
        history = [message.to_domain() for message in payload.history]
        answer = await orchestrator.answer(payload.question, history)
        return ChatResponse(answer=answer)

    @app.post("/documents", response_model=DocumentUploadResponse, status_code=status.HTTP_201_CREATED)
    async def upload_documents(
        files: list[UploadFile] = File(...),
        documents: DocumentAdminService = Depends(get_documents),
        _auth: None = Depends(require_api_key),
    ) -> DocumentUploadResponse:
        if not files:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files uploaded")
        if len(files) > settings.max_files:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Too many files")
        limit = settings.max_upload_size_mb * 1024 * 1024
        uploaded: list[DocumentRecord] = []
        for upload in files:
            filename = upload.filename or ""
            raw = await upload.read(limit + 1)
            await upload.close()
            if len(raw) > limit:
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"File too large (>{settings.max_upload_size_mb}MB): {filename}",
                )
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"File is not valid UTF-8 text: {filename}",
                ) from exc
            if not text.strip():
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"File is empty: {filename}")
            record = documents.upload(filename, text)
            uploaded.append(DocumentRecord(**record))
        return DocumentUploadResponse(documents=uploaded)

    @app.get("/documents", response_model=DocumentListResponse)
    async def list_documents(
        documents: DocumentAdminService = Depends(get_documents),
        _auth: None = Depends(require_api_key),
    ) -> DocumentListResponse:
        return DocumentListResponse(documents=[DocumentRecord(**record) for record in documents.list()])

    @app.delete("/documents/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_document(
        doc_id: str,
        documents: DocumentAdminService = Depends(get_documents),
        _auth: None = Depends(require_api_key),
    ) -> Response:
        documents.delete(doc_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.delete("/documents", response_model=DeleteAllResponse)
    async def delete_all_documents(
        documents: DocumentAdminService = Depends(get_documents),
        _auth: None = Depends(require_api_key),
    ) -> DeleteAllResponse:
        return DeleteAllResponse(removed=documents.delete_all())

    @app.post("/chats", response_model=SaveChatResponse)
    async def save_chat(
        payload: SaveChatRequest,
        chats: ChatHistoryService = Depends(get_chats),
    ) -> SaveChatResponse:
        history = [message.to_domain() for message in payload.chat_history]
        return SaveChatResponse(doc_id=chats.save(history, doc_id=payload.doc_id))

    @app.get("/chats", response_model=ChatListResponse)
    async def list_chats(
        chats: ChatHistoryService = Depends(get_chats),
        _auth: None = Depends(require_api_key),
    ) -> ChatListResponse:
        return ChatListResponse(chats=[ChatTranscript(**chat) for chat in chats.list()])

    @app.delete("/chats/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_chat(
        doc_id: str,
        chats: ChatHistoryService = Depends(get_chats),
        _auth: None = Depends(require_api_key),
    ) -> Response:
        chats.delete(doc_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/index/stats", response_model=IndexStatsResponse)
    async def index_stats(
        dep: AppDependencies = Depends(get_dependencies),
        _auth: None = Depends(require_api_key),
    ) -> IndexStatsResponse:
        return IndexStatsResponse(collection=settings.chroma_collection, total_records=dep.index.count())

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        from docchat import __version__

        return {"status": "ok", "version": __version__, "environment": settings.environment}

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    @app.get("/healthz/ready")
    async def readiness(dep: AppDependencies = Depends(get_dependencies)) -> dict[str, str]:
        try:
            dep.index.count()
        except Exception as exc:  # pragma: no cover - depends on index backend
            return {"status": "error", "detail": str(exc)}
        return {"status": "ready"}

    return app
