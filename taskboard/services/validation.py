from collections.abc import Mapping, Sequence
from datetime import date, datetime, time, timezone
from typing import Any

from taskboard.domain.enums import SortField, SortOrder, TaskPriority, TaskStatus
from taskboard.domain.errors import FieldProblem, TaskValidationError
from taskboard.domain.task import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH

### COMMENTS
# ==========================================================
# Walidacja pól zadania (services/validation.py).
# ==========================================================
# - Jedno miejsce z regułami dla create/update/patch statusu.
# - Zbiera WSZYSTKIE problemy i rzuca jeden TaskValidationError (lista `problems`).
# - Zwraca słownik tylko z polami, które przyszły (częściowa aktualizacja),
#   już w typach domenowych (enumy, datetime UTC, tuple tagów).

TASK_FIELDS = ("title", "description", "status", "priority", "due_date", "tags")


def parse_due_date(raw: Any) -> datetime | None:
    """ISO8601 -> aware UTC. Sama data (YYYY-MM-DD) = północ UTC, czas bez strefy = UTC."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime.combine(raw, time.min)
    elif isinstance(raw, str) and raw.strip():
        value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"not a date: {raw!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        # np. 9999-12-31T23:00-05:00 wypada poza zakres datetime po przejściu na UTC
        raise ValueError(f"date out of range: {raw!r}")


def _enum(enum_cls, raw: Any):
    return raw if isinstance(raw, enum_cls) else enum_cls(raw)


def clean_task_fields(fields: Mapping[str, Any], *, require_title: bool) -> dict[str, Any]:
    """
        Waliduje i normalizuje pola zadania.

        - `title`: przycięty, 1..100 znaków; wymagany gdy `require_title`.
        - `description`: przycięty, max 500 znaków; None -> "".
        - `status`/`priority`: wartości z zamkniętego zestawu.
        - `due_date`: poprawna data ISO8601 albo None (usuwa termin).
        - `tags`: lista napisów; przycinane, puste pomijane.

        :param fields: Surowe pola (tylko te, które klient przysłał).
        :raises TaskValidationError: Z listą wszystkich problemów.
        :return: Słownik z polami gotowymi do `dataclasses.replace`.
    """
    problems: list[FieldProblem] = []
    cleaned: dict[str, Any] = {}

    if "title" in fields or require_title:
        title = fields.get("title")
        if not isinstance(title, str) or not (1 <= len(title.strip()) <= TITLE_MAX_LENGTH):
            problems.append(FieldProblem("title", f"Title must be between 1 and {TITLE_MAX_LENGTH} characters"))
        else:
            cleaned["title"] = title.strip()

    if "description" in fields:
        description = fields["description"]
        if description is None:
            cleaned["description"] = ""
        elif not isinstance(description, str) or len(description.strip()) > DESCRIPTION_MAX_LENGTH:
            problems.append(FieldProblem("description", f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"))
        else:
            cleaned["description"] = description.strip()

    if "status" in fields:
        try:
            cleaned["status"] = _enum(TaskStatus, fields["status"])
        except ValueError:
            problems.append(FieldProblem("status", "Invalid status"))

    if "priority" in fields:
        try:
            cleaned["priority"] = _enum(TaskPriority, fields["priority"])
        except ValueError:
            problems.append(FieldProblem("priority", "Invalid priority"))

    if "due_date" in fields:
        try:
            cleaned["due_date"] = parse_due_date(fields["due_date"])
        except (TypeError, ValueError):
            problems.append(FieldProblem("dueDate", "Invalid date format"))

    if "tags" in fields:
        tags = fields["tags"]
        if tags is None:
            cleaned["tags"] = ()
        elif (
            isinstance(tags, (str, bytes))
            or not isinstance(tags, Sequence)
            or not all(isinstance(t, str) for t in tags)
        ):
            problems.append(FieldProblem("tags", "Tags must be an array"))
        else:
            cleaned["tags"] = tuple(t.strip() for t in tags if t.strip())

    if problems:
        raise TaskValidationError.from_problems(problems)
    return cleaned


def clean_list_query(
    status: Any = None,
    priority: Any = None,
    sort: Any = None,
    order: Any = None,
) -> dict[str, Any]:
    """Waliduje filtr i sortowanie listy. Brak wartości -> domyślne (createdAt desc)."""
    problems: list[FieldProblem] = []
    query: dict[str, Any] = {
        "status": None,
        "priority": None,
        "sort": SortField.CREATED_AT,
        "order": SortOrder.DESC,
    }
    for name, enum_cls, raw in (
        ("status", TaskStatus, status),
        ("priority", TaskPriority, priority),
        ("sort", SortField, sort),
        ("order", SortOrder, order),
    ):
        if raw is None or raw == "":
            continue
        try:
            query[name] = _enum(enum_cls, raw)
        except ValueError:
            problems.append(FieldProblem(name, f"Invalid {name}"))

    if problems:
        raise TaskValidationError.from_problems(problems)
    return query
