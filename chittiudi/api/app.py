"""
FastAPI Application - REST API for the mobile app.

Endpoints:
    GET    /health                                  Liveness
    POST   /api/v1/bowls                            Create a bowl
    GET    /api/v1/bowls                            List bowls (?ids=a,b)
    GET    /api/v1/bowls/{id}                       Get a bowl
    DELETE /api/v1/bowls/{id}                       Delete a bowl (owner)
    POST   /api/v1/bowls/{id}/entries               Add an entry
    DELETE /api/v1/bowls/{id}/entries/{entry_id}    Delete an entry (owner)
    POST   /api/v1/bowls/{id}/clear                 Clear entries (owner)
    POST   /api/v1/bowls/{id}/resolve               Juggle the bowl
    GET    /api/v1/bowls/{id}/share                 Share link and message
    WS     /api/v1/bowls/ws                         Live bowl snapshots

The requester is identified by the ``X-Device-Id`` and ``X-User-Name``
headers. All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional
import asyncio
import logging

from .. import __version__
from ..config import Settings, configure_logging, get_settings

logger = logging.getLogger(__name__)

# Per-connection backlog; the oldest snapshot is dropped first
SNAPSHOT_QUEUE_SIZE = 8


def offer_latest(queue: asyncio.Queue, item) -> None:
    """Put ``item`` on ``queue``, dropping the oldest entry when full."""
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(item)


def create_app(service=None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional BowlService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import Depends, FastAPI, Header, Query, Request, WebSocket, WebSocketDisconnect
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from .service import BowlService
    from .schemas import (
        BowlInfo,
        BowlListResponse,
        CreateBowlRequest,
        DeleteBowlResponse,
        ErrorCode,
        ErrorResponse,
        HealthResponse,
        ResolveResponse,
        ShareResponse,
        SubmitEntryRequest,
    )
    from ..engine_core import (
        AuthorizationError,
        BowlNotFound,
        ChittiUdiError,
        ConflictError,
        PreconditionError,
        StoreError,
        User,
        ValidationError,
    )
    from ..session.links import share_bowl
    from ..store import InMemoryBowlStore

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Chitti Udi API",
        description="""
Shared bowls of entries, juggled at random.

## Bowl types

| Type | Who may juggle | Output |
|------|----------------|--------|
| `pick_one_discard` | owner or member | one entry, removed from the bowl |
| `pick_one_keep` | owner or member | one entry, kept |
| `shuffle_members` | owner | members in random order |
| `make_pairs` | owner | random pairs, odd one out solo |
| `secret_santa` | owner | giver → receiver list |
| `shuffle_entries` | owner | entries in random order |

## Error Codes

| Code | Description |
|------|-------------|
| `VALIDATION_ERROR` | Missing name, limit reached, duplicate or empty entry |
| `PRECONDITION_FAILED` | Not enough entries or members to juggle |
| `FORBIDDEN` | Only the owner (or a member) may do that |
| `BOWL_NOT_FOUND` | Bowl does not exist |
| `CONFLICT` | Bowl changed concurrently too many times |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # CORS for mobile app
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or BowlService(
        store=InMemoryBowlStore(),
        max_retries=settings.max_commit_retries,
    )
    app.state.service = api_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(ChittiUdiError)
    async def handle_engine_error(request: Request, exc: ChittiUdiError):
        details = {"reason": exc.code}
        if isinstance(exc, PreconditionError):
            return make_error_response(ErrorCode.PRECONDITION_FAILED, exc.message, 400, details)
        if isinstance(exc, ValidationError):
            return make_error_response(ErrorCode.VALIDATION_ERROR, exc.message, 400, details)
        if isinstance(exc, AuthorizationError):
            return make_error_response(ErrorCode.FORBIDDEN, exc.message, 403, details)
        if isinstance(exc, BowlNotFound):
            return make_error_response(ErrorCode.BOWL_NOT_FOUND, exc.message, 404, details)
        if isinstance(exc, ConflictError):
            return make_error_response(ErrorCode.CONFLICT, exc.message, 409, details)
        if isinstance(exc, StoreError):
            logger.error(f"Store failure on {request.url.path}: {exc}")
            return make_error_response(ErrorCode.STORE_UNAVAILABLE, exc.message, 503, details)
        logger.error(f"Unhandled engine error on {request.url.path}: {exc}")
        return make_error_response(ErrorCode.INTERNAL_ERROR, exc.message, 500, details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            400,
            {"reason": "invalid-request", "errors": errors},
        )

    def requester(
        device_id: Annotated[str, Header(alias="X-Device-Id", description="Stable device identity")],
        user_name: Annotated[str, Header(alias="X-User-Name", description="Display name")] = "",
    ) -> User:
        if not device_id.strip():
            raise ValidationError("X-Device-Id must not be empty", code="missing-device-id")
        return User(id=device_id.strip(), name=user_name.strip())

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, env=settings.env)

    # =========================================================================
    # Bowl Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/bowls",
        response_model=BowlInfo,
        status_code=201,
        responses={400: {"model": ErrorResponse}},
        tags=["Bowls"],
        summary="Create a new bowl",
    )
    async def create_bowl(
        body: CreateBowlRequest,
        who: Annotated[User, Depends(requester)],
    ) -> BowlInfo:
        """Create a bowl owned by the requesting device."""
        bowl = api_service.create_bowl(
            who,
            body.name,
            description=body.description,
            member_limit=body.member_limit,
            input_count=body.input_count,
            type=body.type,
        )
        return BowlInfo.from_bowl(bowl)

    @app.get(
        "/api/v1/bowls",
        response_model=BowlListResponse,
        tags=["Bowls"],
        summary="List bowls",
    )
    async def list_bowls(
        ids: Annotated[Optional[str], Query(description="Comma-separated bowl ids")] = None,
    ) -> BowlListResponse:
        """List all bowls, or only the given ids (missing ids are skipped)."""
        wanted = [i.strip() for i in ids.split(",") if i.strip()] if ids else None
        bowls = [BowlInfo.from_bowl(b) for b in api_service.list_bowls(wanted)]
        return BowlListResponse(bowls=bowls, count=len(bowls))

    @app.get(
        "/api/v1/bowls/{bowl_id}",
        response_model=BowlInfo,
        responses={404: {"model": ErrorResponse}},
        tags=["Bowls"],
        summary="Get a bowl",
    )
    async def get_bowl(bowl_id: str) -> BowlInfo:
        return BowlInfo.from_bowl(api_service.get_bowl(bowl_id))

    @app.delete(
        "/api/v1/bowls/{bowl_id}",
        response_model=DeleteBowlResponse,
        responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Bowls"],
        summary="Delete a bowl (owner only)",
    )
    async def delete_bowl(
        bowl_id: str,
        who: Annotated[User, Depends(requester)],
    ) -> DeleteBowlResponse:
        api_service.delete_bowl(bowl_id, who)
        return DeleteBowlResponse(success=True, bowl_id=bowl_id)

    # =========================================================================
    # Entry Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/bowls/{bowl_id}/entries",
        response_model=BowlInfo,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Entries"],
        summary="Add an entry",
    )
    async def submit_entry(
        bowl_id: str,
        body: SubmitEntryRequest,
        who: Annotated[User, Depends(requester)],
    ) -> BowlInfo:
        """
        Add an entry to the bowl.

        The requester becomes a member. Non-owners are limited to
        `input_count` entries when it is non-zero.
        """
        bowl = api_service.submit_entry(bowl_id, who, body.text)
        return BowlInfo.from_bowl(bowl)

    @app.delete(
        "/api/v1/bowls/{bowl_id}/entries/{entry_id}",
        response_model=BowlInfo,
        responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Entries"],
        summary="Delete an entry (owner only)",
    )
    async def delete_entry(
        bowl_id: str,
        entry_id: str,
        who: Annotated[User, Depends(requester)],
    ) -> BowlInfo:
        bowl = api_service.delete_entry(bowl_id, who, entry_id)
        return BowlInfo.from_bowl(bowl)

    @app.post(
        "/api/v1/bowls/{bowl_id}/clear",
        response_model=BowlInfo,
        responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Entries"],
        summary="Clear all entries (owner only)",
    )
    async def clear_entries(
        bowl_id: str,
        who: Annotated[User, Depends(requester)],
    ) -> BowlInfo:
        bowl = api_service.clear_entries(bowl_id, who)
        return BowlInfo.from_bowl(bowl)

    # =========================================================================
    # Juggle & Share
    # =========================================================================

    @app.post(
        "/api/v1/bowls/{bowl_id}/resolve",
        response_model=ResolveResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Not enough entries or members"},
            403: {"model": ErrorResponse, "description": "Not allowed to juggle"},
            404: {"model": ErrorResponse},
        },
        tags=["Juggle"],
        summary="Juggle the bowl",
    )
    async def resolve_bowl(
        bowl_id: str,
        who: Annotated[User, Depends(requester)],
    ) -> ResolveResponse:
        bowl = api_service.resolve(bowl_id, who)
        return ResolveResponse(output=bowl.output or "", bowl=BowlInfo.from_bowl(bowl))

    @app.get(
        "/api/v1/bowls/{bowl_id}/share",
        response_model=ShareResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Juggle"],
        summary="Get the share link for a bowl",
    )
    async def share(bowl_id: str) -> ShareResponse:
        bowl = api_service.get_bowl(bowl_id)
        message = share_bowl(bowl.id, settings.share_base_url)
        return ShareResponse(url=message.url, message=message.message, title=message.title)

    # =========================================================================
    # WebSocket for live updates
    # =========================================================================

    @app.websocket("/api/v1/bowls/ws")
    async def bowls_websocket(websocket: WebSocket):
        """
        Stream bowl snapshots.

        Sends ``{"type": "snapshot", "payload": {id: bowl}}`` once on connect
        and again after every change.
        """
        await websocket.accept()
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=SNAPSHOT_QUEUE_SIZE)

        def on_snapshot(snapshot):
            loop.call_soon_threadsafe(offer_latest, queue, snapshot)

        async def pump():
            while True:
                snapshot = await queue.get()
                await websocket.send_json({
                    "type": "snapshot",
                    "payload": {
                        key: BowlInfo.from_bowl(bowl).model_dump(mode="json")
                        for key, bowl in snapshot.items()
                    },
                })

        subscription = api_service.subscribe(on_snapshot)
        sender = asyncio.create_task(pump())
        try:
            # Client messages are ignored; reading detects the disconnect
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug("Snapshot subscriber disconnected")
        finally:
            subscription.unsubscribe()
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Snapshot sender failed")

    return app

