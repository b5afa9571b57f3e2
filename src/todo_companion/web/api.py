# src/todo_companion/web/api.py

"""
HTTP JSON API for the web client.

Every task endpoint resolves the owner identity first (401 when it cannot),
then validates the body, then calls TaskService. Errors from the taxonomy in
core.errors become {"error": "..."} bodies with the matching status code.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..core.chat import touch_sender
from ..core.errors import InvalidInput, StorageUnavailable, TaskError
from ..core.identity import Identity, resolve_identity
from ..core.state import AppState
from .schemas import (
    CreateTaskRequest,
    DeletedOut,
    ErrorOut,
    StatusOut,
    SummaryOut,
    TaskOut,
    UpdateTaskRequest,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorOut},
    401: {"model": ErrorOut},
    404: {"model": ErrorOut},
    500: {"model": ErrorOut},
}


@dataclass(frozen=True, slots=True)
class IdentitySources:
    explicit: str | None
    header: str | None
    launch_payload: str | None
    display_name: str | None


def get_state(request: Request) -> AppState:
    return request.app.state.app_state


def identity_sources(
    user_id: str | None = Query(default=None, alias="userId"),
    username: str | None = Query(default=None),
    init_data: str | None = Query(default=None, alias="initData"),
    x_user_id: str | None = Header(default=None),
    x_telegram_init_data: str | None = Header(default=None),
) -> IdentitySources:
    # Header names: X-User-Id / X-Telegram-Init-Data.
    return IdentitySources(
        explicit=user_id,
        header=x_user_id,
        launch_payload=x_telegram_init_data or init_data,
        display_name=username,
    )


def _resolve(
    state: AppState,
    sources: IdentitySources,
    *,
    body_user_id: Any = None,
    body_display_name: str | None = None,
) -> Identity:
    explicit: Any = sources.explicit
    if explicit is None or not str(explicit).strip():
        explicit = body_user_id

    return resolve_identity(
        explicit=explicit,
        header=sources.header,
        launch_payload=sources.launch_payload,
        display_name=body_display_name or sources.display_name,
        bot_token=state.bot_token(),
        verify_signature=state.verify_launch_payload(),
        max_age=state.launch_payload_max_age(),
    )


def require_identity(
    state: AppState = Depends(get_state),
    sources: IdentitySources = Depends(identity_sources),
) -> Identity:
    return _resolve(state, sources)


async def _read_json_object(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        raise InvalidInput("Request body must be valid JSON.") from None
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object.")
    return data


def _validation_message(e: ValidationError | RequestValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TaskError)
    async def _task_error(request: Request, exc: TaskError) -> JSONResponse:
        if isinstance(exc, StorageUnavailable):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            return _error_response(exc.status_code, StorageUnavailable.public_message)
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error.")


def _install_routes(app: FastAPI) -> None:
    @app.get("/api/tasks", response_model=list[TaskOut], responses=ERROR_RESPONSES)
    def list_tasks(
        identity: Identity = Depends(require_identity),
        state: AppState = Depends(get_state),
    ) -> list[TaskOut]:
        return [TaskOut.from_task(t) for t in state.tasks.list_tasks(identity.owner_id)]

    @app.post("/api/tasks", status_code=201, response_model=TaskOut, responses=ERROR_RESPONSES)
    async def create_task(
        request: Request,
        sources: IdentitySources = Depends(identity_sources),
        state: AppState = Depends(get_state),
    ) -> TaskOut:
        # Identity is checked before body errors are reported.
        body_error: InvalidInput | None = None
        try:
            data = await _read_json_object(request)
        except InvalidInput as e:
            body_error, data = e, {}

        identity = _resolve(
            state,
            sources,
            body_user_id=data.get("userId"),
            body_display_name=data.get("displayName") or data.get("username"),
        )
        if body_error is not None:
            raise body_error

        try:
            body = CreateTaskRequest.model_validate(data)
        except ValidationError as e:
            raise InvalidInput(_validation_message(e)) from None

        task = await run_in_threadpool(
            state.tasks.add_task,
            identity.owner_id,
            body.text,
            body.display_name or identity.display_name,
        )
        await run_in_threadpool(touch_sender, state, identity)
        return TaskOut.from_task(task)

    @app.put("/api/tasks/{task_id}", response_model=TaskOut, responses=ERROR_RESPONSES)
    async def update_task(
        task_id: str,
        request: Request,
        identity: Identity = Depends(require_identity),
        state: AppState = Depends(get_state),
    ) -> TaskOut:
        data = await _read_json_object(request)
        try:
            body = UpdateTaskRequest.model_validate(data)
        except ValidationError as e:
            raise InvalidInput(_validation_message(e)) from None

        task = await run_in_threadpool(
            state.tasks.toggle_completion, task_id, identity.owner_id, body.completed
        )
        return TaskOut.from_task(task)

    @app.delete("/api/tasks/{task_id}", response_model=DeletedOut, responses=ERROR_RESPONSES)
    def delete_task(
        task_id: str,
        identity: Identity = Depends(require_identity),
        state: AppState = Depends(get_state),
    ) -> DeletedOut:
        state.tasks.remove_task(task_id, identity.owner_id)
        return DeletedOut(deleted=True)

    @app.get("/api/user/stats", response_model=SummaryOut, responses=ERROR_RESPONSES)
    def user_stats(
        identity: Identity = Depends(require_identity),
        state: AppState = Depends(get_state),
    ) -> SummaryOut:
        return SummaryOut.from_summary(state.tasks.summarize(identity.owner_id))

    @app.get("/api/status", response_model=StatusOut)
    def status(state: AppState = Depends(get_state)) -> StatusOut:
        return StatusOut(
            status="OK",
            storage_connected=state.tasks.storage_connected(),
            timestamp=datetime.now(UTC),
        )


def create_app(state: AppState) -> FastAPI:
    settings = state.settings
    app = FastAPI(title=str(getattr(settings, "app_name", "todo-companion")))
    app.state.app_state = state

    origins = list(getattr(settings, "cors_origins", None) or ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials only for an explicit origin list.
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_error_handlers(app)
    _install_routes(app)

    # Static web client last, so /api/* routes win.
    static_dir = getattr(settings, "static_dir", None)
    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
        logger.info("Serving web client from %s", static_dir)

    return app
