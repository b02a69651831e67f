"""Transport REST (FastAPI) dla serwisu zadań."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskboard.adapters.wire import encode_stats, encode_task, encode_user
from taskboard.api.schemas import (
    LoginPayload,
    RegisterPayload,
    StatusPayload,
    TaskFieldsPayload,
    parse_payload,
)
from taskboard.bootstrap import Services
from taskboard.domain.errors import (
    AuthenticationError,
    FieldProblem,
    InvalidTaskIdError,
    StorageError,
    TaskNotFoundError,
    TaskValidationError,
    UserAlreadyExistsError,
)
from taskboard.domain.task import UserId

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, problems: list[FieldProblem] | None = None) -> JSONResponse:
    body: dict[str, Any] = {"message": message}
    if problems:
        body["errors"] = [{"field": p.field, "message": p.message} for p in problems]
    return JSONResponse(status_code=status_code, content=body)


def _install_error_handlers(app: FastAPI) -> None:
    """Błędy domenowe -> `{message, errors?}` z pasującym kodem HTTP."""

    @app.exception_handler(TaskValidationError)
    async def _validation(request: Request, exc: TaskValidationError) -> JSONResponse:
        return _error(400, "Validation failed", exc.problems)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = [
            FieldProblem(str(err["loc"][-1]) if err.get("loc") else "request", err.get("msg", "Invalid value"))
            for err in exc.errors()
        ]
        return _error(400, "Validation failed", problems)

    @app.exception_handler(InvalidTaskIdError)
    async def _invalid_id(request: Request, exc: InvalidTaskIdError) -> JSONResponse:
        return _error(400, "Invalid task ID")

    @app.exception_handler(TaskNotFoundError)
    async def _not_found(request: Request, exc: TaskNotFoundError) -> JSONResponse:
        # ta sama odpowiedź dla "nie ma" i "cudze"
        return _error(404, "Task not found")

    @app.exception_handler(AuthenticationError)
    async def _unauthorized(request: Request, exc: AuthenticationError) -> JSONResponse:
        return _error(401, exc.message)

    @app.exception_handler(UserAlreadyExistsError)
    async def _conflict(request: Request, exc: UserAlreadyExistsError) -> JSONResponse:
        return _error(409, "User already exists")

    @app.exception_handler(StorageError)
    async def _storage(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return _error(503, "Service temporarily unavailable")

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Server error")


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise TaskValidationError("body", "Malformed JSON body")


def create_app(services: Services) -> FastAPI:
    """Buduje API wokół gotowych serwisów (patrz bootstrap.build_services)."""
    app = FastAPI(title="taskboard API", version="1.0.0")
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    bearer = HTTPBearer(auto_error=False)
    router = APIRouter(prefix="/api")

    def current_owner(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> UserId:
        """Rozwiązuje token Bearer, zanim cokolwiek innego w trasie zadań się wykona."""
        return services.auth.resolve(credentials.credentials if credentials else None)

    async def owner_body(request: Request, owner_id: UserId = Depends(current_owner)) -> Any:
        # body czytane dopiero po uwierzytelnieniu
        return await _read_json(request)

    async def public_body(request: Request) -> Any:
        return await _read_json(request)

    # ---- health / auth ----

    @router.get("/health", tags=["meta"])
    def health() -> dict[str, Any]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @router.post("/auth/register", status_code=201, tags=["auth"])
    def register(payload: Any = Depends(public_body)) -> dict[str, Any]:
        data = parse_payload(RegisterPayload, payload)
        token, user = services.auth.register(data["name"], data["email"], data["password"])
        return {"message": "User registered successfully", "token": token, "user": encode_user(user)}

    @router.post("/auth/login", tags=["auth"])
    def login(payload: Any = Depends(public_body)) -> dict[str, Any]:
        data = parse_payload(LoginPayload, payload)
        token, user = services.auth.login(data["email"], data["password"])
        return {"message": "Login successful", "token": token, "user": encode_user(user)}

    @router.get("/auth/me", tags=["auth"])
    def me(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> dict[str, Any]:
        user = services.auth.current_user(credentials.credentials if credentials else None)
        return {"user": encode_user(user)}

    @router.post("/auth/logout", tags=["auth"])
    def logout(
        owner_id: UserId = Depends(current_owner),
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    ) -> dict[str, Any]:
        services.auth.logout(credentials.credentials)
        return {"message": "Logged out successfully"}

    # ---- tasks ----

    @router.get("/tasks", tags=["tasks"])
    def list_tasks(
        owner_id: UserId = Depends(current_owner),
        status: Optional[str] = None,
        priority: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
    ) -> dict[str, Any]:
        tasks = services.tasks.list_tasks(owner_id, status=status, priority=priority, sort=sort, order=order)
        return {"tasks": [encode_task(t) for t in tasks], "count": len(tasks)}

    # przed /tasks/{task_id}, żeby "stats" nie zostało wzięte za id
    @router.get("/tasks/stats", tags=["tasks"])
    def task_stats(owner_id: UserId = Depends(current_owner)) -> dict[str, Any]:
        return {"stats": encode_stats(services.tasks.stats(owner_id))}

    @router.get("/tasks/{task_id}", tags=["tasks"])
    def get_task(task_id: str, owner_id: UserId = Depends(current_owner)) -> dict[str, Any]:
        return {"task": encode_task(services.tasks.get_task(owner_id, task_id))}

    @router.post("/tasks", status_code=201, tags=["tasks"])
    def create_task(
        owner_id: UserId = Depends(current_owner),
        payload: Any = Depends(owner_body),
    ) -> dict[str, Any]:
        fields = parse_payload(TaskFieldsPayload, payload)
        task = services.tasks.create_task(owner_id, fields)
        return {"message": "Task created successfully", "task": encode_task(task)}

    @router.put("/tasks/{task_id}", tags=["tasks"])
    def update_task(
        task_id: str,
        owner_id: UserId = Depends(current_owner),
        payload: Any = Depends(owner_body),
    ) -> dict[str, Any]:
        fields = parse_payload(TaskFieldsPayload, payload)
        task = services.tasks.update_task(owner_id, task_id, fields)
        return {"message": "Task updated successfully", "task": encode_task(task)}

    @router.patch("/tasks/{task_id}/status", tags=["tasks"])
    def update_status(
        task_id: str,
        owner_id: UserId = Depends(current_owner),
        payload: Any = Depends(owner_body),
    ) -> dict[str, Any]:
        data = parse_payload(StatusPayload, payload, required=("status",))
        task = services.tasks.set_status(owner_id, task_id, data["status"])
        return {"message": "Task status updated successfully", "task": encode_task(task)}

    @router.delete("/tasks/{task_id}", tags=["tasks"])
    def delete_task(task_id: str, owner_id: UserId = Depends(current_owner)) -> dict[str, Any]:
        deleted = services.tasks.delete_task(owner_id, task_id)
        return {"message": "Task deleted successfully", "taskId": str(deleted)}

    app.include_router(router)
    return app
