"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import UUID

from fastapi import FastAPI, File, Request, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photo_run.api.schemas import (
    CatalogView,
    ConfigurationUpdate,
    EnhancementView,
    RefineRequest,
    ServiceFailureView,
    SessionView,
)
from photo_run.app_logging import configure_logging
from photo_run.config import parse_allowed_origins
from photo_run.containers import AppContainer
from photo_run.domain.catalog import (
    DEFAULT_ASPECT_RATIO,
    AspectRatio,
    FoodCategory,
    default_enhancements,
)
from photo_run.domain.errors import (
    InvalidTransitionError,
    ServiceFailureError,
    SessionNotFoundError,
    WorkflowValidationError,
)
from photo_run.domain.sessions import ImageUpload
from photo_run.services.images import (
    build_upload,
    ensure_within_limit,
    extension_for,
    parse_data_url,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found(
        request: Request, exc: SessionNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(WorkflowValidationError)
    async def validation_failed(
        request: Request, exc: WorkflowValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(ServiceFailureError)
    async def service_failed(
        request: Request, exc: ServiceFailureError
    ) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        session_view = None
        raw_id = request.path_params.get("session_id")
        if raw_id is not None:
            session_id = UUID(str(raw_id))
            try:
                session = state_container.workflow.get_session(session_id)
            except SessionNotFoundError:
                logger.warning(
                    "Session gone before failure was reported: session_id=%s",
                    session_id,
                )
            else:
                session_view = SessionView.from_session(session_id, session)
        body = ServiceFailureView(
            detail=_format_service_error(state_container, exc),
            session=session_view,
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=body.model_dump(mode="json"),
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/catalog")
    async def catalog(request: Request) -> CatalogView:
        """Return the configuration choices and payment details."""
        state_container: AppContainer = request.app.state.container
        return CatalogView(
            categories=list(FoodCategory),
            aspect_ratios=list(AspectRatio),
            default_aspect_ratio=DEFAULT_ASPECT_RATIO,
            enhancements=[
                EnhancementView(
                    id=option.id, label=option.label, selected=option.selected
                )
                for option in default_enhancements()
            ],
            pix_key=state_container.settings.pix_key,
            payment_amount=state_container.settings.payment_amount,
        )

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(request: Request) -> SessionView:
        """Start a new workflow session."""
        workflow = request.app.state.container.workflow
        session_id, session = workflow.start_session()
        return SessionView.from_session(session_id, session)

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> SessionView:
        """Return the current session state."""
        session = request.app.state.container.workflow.get_session(session_id)
        return SessionView.from_session(session_id, session)

    @app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_session(session_id: UUID, request: Request) -> Response:
        """Forget a session."""
        request.app.state.container.workflow.end_session(session_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.put("/sessions/{session_id}/image")
    async def select_image(
        session_id: UUID, request: Request, file: UploadFile = File(...)
    ) -> SessionView:
        """Upload the dish photo to enhance."""
        state_container: AppContainer = request.app.state.container
        upload = await _read_upload(state_container, file)
        session = state_container.workflow.select_image(session_id, upload)
        logger.info(
            "Source image selected: session_id=%s mime_type=%s",
            session_id,
            upload.mime_type,
        )
        return SessionView.from_session(session_id, session)

    @app.get("/sessions/{session_id}/source")
    async def source_image(session_id: UUID, request: Request) -> Response:
        """Serve the uploaded source photo for the before/after view."""
        session = request.app.state.container.workflow.get_session(session_id)
        if session.source_image is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"detail": "No image uploaded"},
            )
        return Response(
            content=session.source_image.content,
            media_type=session.source_image.mime_type,
        )

    @app.patch("/sessions/{session_id}/configuration")
    async def configure(
        session_id: UUID, update: ConfigurationUpdate, request: Request
    ) -> SessionView:
        """Change category, aspect ratio, enhancements or instructions."""
        session = request.app.state.container.workflow.configure(
            session_id,
            category=update.category,
            aspect_ratio=update.aspect_ratio,
            instructions=update.instructions,
            enhancements=update.enhancements,
        )
        return SessionView.from_session(session_id, session)

    @app.post("/sessions/{session_id}/enhancements/{option_id}/toggle")
    async def toggle_enhancement(
        session_id: UUID, option_id: str, request: Request
    ) -> SessionView:
        """Flip one enhancement option."""
        session = request.app.state.container.workflow.toggle_enhancement(
            session_id, option_id
        )
        return SessionView.from_session(session_id, session)

    @app.post("/sessions/{session_id}/submit")
    async def submit(session_id: UUID, request: Request) -> SessionView:
        """Finish configuration and open the payment step."""
        session = request.app.state.container.workflow.submit_configuration(session_id)
        return SessionView.from_session(session_id, session)

    @app.post("/sessions/{session_id}/payment/cancel")
    async def cancel_payment(session_id: UUID, request: Request) -> SessionView:
        """Close the payment step."""
        session = request.app.state.container.workflow.cancel_payment(session_id)
        return SessionView.from_session(session_id, session)

    @app.put("/sessions/{session_id}/receipt")
    async def upload_receipt(
        session_id: UUID, request: Request, file: UploadFile = File(...)
    ) -> SessionView:
        """Upload the Pix receipt."""
        state_container: AppContainer = request.app.state.container
        upload = await _read_upload(state_container, file)
        session = state_container.workflow.upload_receipt(session_id, upload)
        return SessionView.from_session(session_id, session)

    @app.post("/sessions/{session_id}/payment/confirm")
    async def confirm_payment(session_id: UUID, request: Request) -> SessionView:
        """Verify the receipt and, when valid, generate the enhanced photo."""
        session = await request.app.state.container.workflow.confirm_payment(
            session_id
        )
        return SessionView.from_session(session_id, session)

    @app.post("/sessions/{session_id}/generate")
    async def generate(session_id: UUID, request: Request) -> SessionView:
        """Retry generation for a paid session."""
        session = await request.app.state.container.workflow.generate(session_id)
        return SessionView.from_session(session_id, session)

    @app.post("/sessions/{session_id}/refine")
    async def refine(
        session_id: UUID, payload: RefineRequest, request: Request
    ) -> SessionView:
        """Apply a follow-up edit to the result."""
        session = await request.app.state.container.workflow.refine(
            session_id, payload.instruction
        )
        return SessionView.from_session(session_id, session)

    @app.get("/sessions/{session_id}/result")
    async def download_result(session_id: UUID, request: Request) -> Response:
        """Download the generated image."""
        session = request.app.state.container.workflow.get_session(session_id)
        if session.result is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"detail": "No result available"},
            )
        content, mime_type = parse_data_url(session.result.image_data_url)
        filename = _download_filename(mime_type)
        return Response(
            content=content,
            media_type=mime_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/sessions/{session_id}/reset")
    async def reset(session_id: UUID, request: Request) -> SessionView:
        """Discard the session state and start over."""
        session = request.app.state.container.workflow.reset(session_id)
        return SessionView.from_session(session_id, session)

    return app


async def _read_upload(container: AppContainer, file: UploadFile) -> ImageUpload:
    """Read a multipart upload and validate it as an image.

    Reads at most one byte past ``max_upload_bytes``.
    """
    max_bytes = container.settings.max_upload_bytes
    if file.size is not None:
        ensure_within_limit(file.size, max_bytes)
    content = await file.read(max_bytes + 1)
    return build_upload(content, file.content_type, file.filename, max_bytes)


def _download_filename(mime_type: str) -> str:
    timestamp = int(datetime.now(tz=UTC).timestamp() * 1000)
    return f"photorun-{timestamp}.{extension_for(mime_type)}"


def _format_service_error(container: AppContainer, exc: ServiceFailureError) -> str:
    """Return the user-facing notice with local debug info."""
    if container.settings.environment == "local" and exc.cause is not None:
        detail = f"{type(exc.cause).__name__}: {exc.cause}".strip()
        if detail:
            return f"{exc.notice} (debug: {detail})"
    return exc.notice
