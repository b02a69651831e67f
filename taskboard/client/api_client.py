"""Klienci HTTP dla API taskboard.

Każdy klient to jawny obiekt jednej sesji: `httpx.Client` (z korzeniem API
jako `base_url`) i token Bearer wstrzykiwane raz i wysyłane przy każdym
wywołaniu. Nic nie jest konfigurowane globalnie.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

import httpx

from taskboard.adapters.wire import decode_stats, decode_task, encode_dt
from taskboard.domain.errors import (
    AuthenticationError,
    DomainError,
    FieldProblem,
    InvalidTaskIdError,
    ServiceUnavailableError,
    TaskNotFoundError,
    TaskValidationError,
    UserAlreadyExistsError,
)
from taskboard.domain.stats import TaskStats
from taskboard.domain.task import Task, TaskId

logger = logging.getLogger(__name__)

# nazwa pola w Pythonie -> nazwa w JSON
_WIRE_NAMES = {"due_date": "dueDate"}


def _message(response: httpx.Response) -> tuple[str, list[FieldProblem]]:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "Request failed", []
    if not isinstance(body, dict):
        return "Request failed", []
    problems = [
        FieldProblem(str(e.get("field", "")), str(e.get("message", "")))
        for e in body.get("errors") or []
        if isinstance(e, dict)
    ]
    return str(body.get("message", "Request failed")), problems


def raise_for_status(response: httpx.Response, task_id: str | None = None) -> None:
    """Odwzorowuje odpowiedź z błędem na wyjątek domenowy rzucony po stronie serwera."""
    code = response.status_code
    if code < 400:
        return

    message, problems = _message(response)
    if code == 400:
        if message == "Invalid task ID":
            raise InvalidTaskIdError(task_id or "")
        raise TaskValidationError.from_problems(problems or [FieldProblem("request", message)])
    if code == 401:
        raise AuthenticationError(message)
    if code == 404:
        raise TaskNotFoundError(task_id or "")
    if code == 409:
        raise UserAlreadyExistsError(message)
    if code >= 500:
        raise ServiceUnavailableError(message)
    raise DomainError(message)


def to_wire(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Pola zadania po stronie Pythona -> body JSON (camelCase, daty jako ISO 'Z')."""
    body: dict[str, Any] = {}
    for name, value in fields.items():
        if isinstance(value, datetime):
            value = encode_dt(value)
        elif isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        elif isinstance(value, Enum):
            value = value.value
        body[_WIRE_NAMES.get(name, name)] = value
    return body


class _BaseApiClient:
    def __init__(self, http: httpx.Client) -> None:
        self.http = http

    def _send(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        task_id: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ServiceUnavailableError(f"API unreachable: {e}")
        raise_for_status(response, task_id)
        return response.json()


class AuthApiClient(_BaseApiClient):
    """Endpointy kont; zwraca surowe dokumenty użytkownika (`id`, `email`, `name`)."""

    def register(self, name: str, email: str, password: str) -> tuple[str, dict[str, Any]]:
        body = self._send("POST", "auth/register", json={"name": name, "email": email, "password": password})
        return body["token"], body["user"]

    def login(self, email: str, password: str) -> tuple[str, dict[str, Any]]:
        body = self._send("POST", "auth/login", json={"email": email, "password": password})
        return body["token"], body["user"]

    def me(self, token: str) -> dict[str, Any]:
        return self._send("GET", "auth/me", token=token)["user"]

    def logout(self, token: str) -> None:
        self._send("POST", "auth/logout", token=token)


class TaskApiClient(_BaseApiClient):
    """Endpointy zadań dla jednej uwierzytelnionej sesji."""

    def __init__(self, http: httpx.Client, token: str) -> None:
        super().__init__(http)
        self.token = token

    def list_tasks(
        self,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
    ) -> list[Task]:
        params = {
            k: getattr(v, "value", v)
            for k, v in (("status", status), ("priority", priority), ("sort", sort), ("order", order))
            if v is not None
        }
        body = self._send("GET", "tasks", token=self.token, params=params)
        return [decode_task(doc) for doc in body["tasks"]]

    def get_task(self, task_id: str) -> Task:
        body = self._send("GET", f"tasks/{task_id}", token=self.token, task_id=task_id)
        return decode_task(body["task"])

    def create_task(self, fields: Mapping[str, Any]) -> Task:
        body = self._send("POST", "tasks", token=self.token, json=to_wire(fields))
        return decode_task(body["task"])

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        body = self._send("PUT", f"tasks/{task_id}", token=self.token, task_id=task_id, json=to_wire(fields))
        return decode_task(body["task"])

    def set_status(self, task_id: str, status: Any) -> Task:
        body = self._send(
            "PATCH",
            f"tasks/{task_id}/status",
            token=self.token,
            task_id=task_id,
            json={"status": getattr(status, "value", status)},
        )
        return decode_task(body["task"])

    def delete_task(self, task_id: str) -> TaskId:
        body = self._send("DELETE", f"tasks/{task_id}", token=self.token, task_id=task_id)
        return TaskId(body["taskId"])

    def stats(self) -> TaskStats:
        return decode_stats(self._send("GET", "tasks/stats", token=self.token)["stats"])
