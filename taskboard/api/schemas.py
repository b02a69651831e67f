"""Kształty body żądań HTTP API (pydantic).

Pydantic sprawdza tylko kształt JSON (typy); reguły znaczeniowe (długości,
enumy, daty) są w services/validation.py.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from taskboard.domain.errors import FieldProblem, TaskValidationError

# komunikaty zgodne z walidacją serwisu, żeby klient dostał jeden słownik błędów
_MESSAGES = {
    "title": "Title must be between 1 and 100 characters",
    "description": "Description cannot exceed 500 characters",
    "status": "Invalid status",
    "priority": "Invalid priority",
    "dueDate": "Invalid date format",
    "tags": "Tags must be an array",
}


class TaskFieldsPayload(BaseModel):
    """Body dla POST /tasks i PUT /tasks/{id}; na poziomie kształtu każde pole opcjonalne."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    tags: Optional[list[str]] = None


class StatusPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None


class RegisterPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    email: str
    password: str


class LoginPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str
    password: str


def parse_payload(model: type[BaseModel], payload: Any, *, required: tuple[str, ...] = ()) -> dict[str, Any]:
    """
        Waliduje `payload` modelem i zwraca tylko pola przysłane przez klienta
        (nazwy pythonowe, np. `due_date`).

        :param required: Pola, które muszą trafić do serwisu, nawet gdy ich nie przysłano
            (np. `status` dla PATCH statusu); brak -> None, odrzuci je walidacja serwisu.
        :raises TaskValidationError: Body nie jest obiektem JSON albo ma złe typy.
    """
    if not isinstance(payload, dict):
        raise TaskValidationError("body", "Request body must be a JSON object")
    try:
        parsed = model.model_validate(payload)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "body"
            problem = FieldProblem(field, _MESSAGES.get(field, err["msg"]))
            if problem not in problems:
                problems.append(problem)
        raise TaskValidationError.from_problems(problems)

    data = parsed.model_dump(exclude_unset=True)
    for name in required:
        data.setdefault(name, None)
    return data
