from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterator, Optional

import httpx
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from typer import Context, Exit, Option, Argument, Typer

from taskboard.adapters.system import SystemClock
from taskboard.api.http import create_app
from taskboard.bootstrap import build_services
from taskboard.api.colors import PRIORITY_COLORS, STATUS_COLORS, TaskColor, paint
from taskboard.config import Settings, load_settings
from taskboard.client.cache import TaskCache
from taskboard.client.session import TaskboardSession
from taskboard.domain.enums import SortField, SortOrder, TaskPriority, TaskStatus
from taskboard.domain.errors import (
    AuthenticationError,
    DomainError,
    TaskNotFoundError,
    TaskValidationError,
)
from taskboard.domain.task import Task, is_due_today, is_overdue
from taskboard.logging_setup import setup_logging


### COMMENTS
# ==========================================================
# CLI (Typer + Rich): klient i serwer taskboard.
# ==========================================================
# Rola:
# - `serve` uruchamia API (FastAPI + uvicorn).
# - Pozostałe komendy to klient: TaskboardSession → TaskCache → HTTP API.
# - Wyświetla wyniki w czytelnej formie (tabele, panele, kolory).
# - Łapie DomainError i drukuje przyjazne komunikaty.
#
# Zasady:
# - Zero logiki biznesowej: wszystko liczy serwer albo cache klienta.
# - Token podawany jawnie (--token / TASKBOARD_TOKEN), nic nie zapisujemy na dysku.


app = Typer(help="taskboard, personal task manager (REST API + CLI client)")
console = Console()


@dataclass
class CliState:
    settings: Settings
    api_url: str
    token: Optional[str]


@app.callback()
def main(
    ctx: Context,
    api_url: Optional[str] = Option(None, "--api-url", help="Adres API (domyślnie TASKBOARD_API_URL)"),
    token: Optional[str] = Option(None, "--token", envvar="TASKBOARD_TOKEN", help="Token sesji"),
    verbose: bool = Option(False, "--verbose", "-v", help="Logi DEBUG na konsoli"),
) -> None:
    """Bootstrap ustawień i logowania na starcie procesu CLI."""
    settings = load_settings()
    setup_logging(log_dir=settings.log_dir, console_level="DEBUG" if verbose else settings.log_level)
    ctx.obj = CliState(settings=settings, api_url=api_url or settings.api_url, token=token or settings.token)


def short_id(task_id: str, n: int = 8) -> str:
    """Zwraca skróconą wersję UUID do wyświetlenia (np. pierwsze 8 znaków)."""
    return task_id[:n]


def color_status(status: TaskStatus) -> str:
    return paint(TaskStatus(status).value, STATUS_COLORS[TaskStatus(status)])


def color_priority(priority: TaskPriority) -> str:
    return paint(TaskPriority(priority).value, PRIORITY_COLORS[TaskPriority(priority)])


def format_due(task: Task, now: datetime) -> str:
    if task.due_date is None:
        return paint("-", TaskColor.DIM)
    text = task.due_date.strftime("%Y-%m-%d")
    if is_overdue(task, now):
        return paint(f"{text} (Overdue)", TaskColor.RED)
    if is_due_today(task, now):
        return paint(f"{text} (Today)", TaskColor.YELLOW)
    return text


def render_list(items: list[Task], now: datetime) -> None:
    """Renderuje tabelę Rich z kolumnami: ID, Title, Priority, Status, Due, Tags."""

    table = Table(show_lines=True, header_style="bold")
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Title")
    table.add_column("Priority", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Due", no_wrap=True)
    table.add_column("Tags", style="dim")

    for t in items:
        table.add_row(
            short_id(t.task_id),
            t.title,
            color_priority(t.priority),
            color_status(t.status),
            format_due(t, now),
            ", ".join(t.tags),
        )

    console.print(table)
    console.print(f"[dim]Razem: {len(items)}[/dim]")


def render_task(task: Task, now: datetime, title: str = "Szczegóły zadania", border: str = "cyan") -> None:
    lines = [
        f"ID: {task.task_id}",
        f"Title: {task.title}",
        f"Description: {task.description or '[dim]brak[/]'}",
        f"Status: {color_status(task.status)}",
        f"Priority: {color_priority(task.priority)}",
        f"Due: {format_due(task, now)}",
        f"Tags: {', '.join(task.tags) or '[dim]brak[/]'}",
        f"Created: {task.created_at.isoformat()}",
    ]
    if task.completed_at is not None:
        lines.append(f"Completed: {task.completed_at.isoformat()}")
    console.print(Panel.fit("\n".join(lines), title=title, border_style=border))


@contextmanager
def error_panels(task_id: str | None = None) -> Iterator[None]:
    """Zamienia DomainError na czerwony panel i kod wyjścia 1."""
    try:
        yield
    except TaskValidationError as e:
        details = "\n".join(f"• {p.field}: {p.message}" for p in e.problems)
        console.print(Panel.fit(f"❌ {details}", title="Błąd walidacji", border_style="red"))
        raise Exit(1)
    except TaskNotFoundError:
        console.print(Panel.fit(
            f"❌ Nie znaleziono zadania o ID: {task_id}\n[dim]Użyj 'taskboard list', żeby znaleźć poprawne ID[/]",
            title="Nie znaleziono",
            border_style="red",
        ))
        raise Exit(1)
    except AuthenticationError as e:
        console.print(Panel.fit(
            f"❌ {e}\n[dim]Zaloguj się: taskboard login EMAIL, potem ustaw TASKBOARD_TOKEN[/]",
            title="Brak autoryzacji",
            border_style="red",
        ))
        raise Exit(1)
    except DomainError as e:
        console.print(Panel.fit(f"❌ {e}", title="Błąd", border_style="red"))
        raise Exit(1)


def _http_client(state: CliState) -> httpx.Client:
    return httpx.Client(base_url=state.api_url, timeout=10.0)


@contextmanager
def open_session(state: CliState) -> Iterator[TaskboardSession]:
    """Sesja klienta na czas jednej komendy; połączenie HTTP zamykane na wyjściu."""
    with _http_client(state) as http:
        yield TaskboardSession(http, SystemClock())


@contextmanager
def signed_in(ctx: Context) -> Iterator[TaskCache]:
    """Wznawia sesję z tokenem i udostępnia odświeżony cache zadań."""
    state: CliState = ctx.obj
    if not state.token:
        raise AuthenticationError("No token")
    with open_session(state) as session:
        session.restore(state.token)
        yield session.tasks


def resolve_id(cache: TaskCache, raw: str) -> str:
    """Pozwala podać skrócone ID (prefiks), o ile jest jednoznaczny w cache."""
    matches = [t.task_id for t in cache.tasks() if t.task_id.startswith(raw)]
    return matches[0] if len(matches) == 1 else raw


# ---- serwer ----

@app.command("serve")
def serve(
    ctx: Context,
    host: Optional[str] = Option(None, "--host"),
    port: Optional[int] = Option(None, "--port", "-p"),
    database_url: Optional[str] = Option(None, "--database-url", help="URL SQLAlchemy albo 'memory'"),
) -> None:
    """Uruchamia REST API."""
    state: CliState = ctx.obj
    settings = replace(state.settings, database_url=database_url or state.settings.database_url)
    with error_panels():
        services = build_services(settings)
    uvicorn.run(
        create_app(services),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


# ---- konto ----

@app.command("register")
def register(
    ctx: Context,
    email: str,
    name: str = Option(..., "--name", "-n"),
    password: str = Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Zakłada konto i wypisuje token sesji."""
    with error_panels(), open_session(ctx.obj) as session:
        identity = session.register(name, email, password)
    console.print(Panel.fit(
        f"✅ Konto utworzone: {identity.name} <{identity.email}>\n"
        f"[dim]export TASKBOARD_TOKEN={identity.token}[/]",
        title="Sukces",
        border_style="green",
    ))


@app.command("login")
def login(
    ctx: Context,
    email: str,
    password: str = Option(..., prompt=True, hide_input=True),
) -> None:
    """Loguje i wypisuje token sesji."""
    with error_panels(), open_session(ctx.obj) as session:
        identity = session.login(email, password)
    console.print(Panel.fit(
        f"✅ Zalogowano: {identity.name}\n[dim]export TASKBOARD_TOKEN={identity.token}[/]",
        title="Sukces",
        border_style="green",
    ))


@app.command("whoami")
def whoami(ctx: Context) -> None:
    with error_panels(), open_session(ctx.obj) as session:
        identity = session.restore(ctx.obj.token or "")
        count = len(session.tasks)
    console.print(f"{identity.name} <{identity.email}> • zadań: {count}")


# ---- zadania ----

@app.command("list")
def list_cmd(
    ctx: Context,
    status: Optional[TaskStatus] = Option(None, "--status", "-s"),
    priority: Optional[TaskPriority] = Option(None, "--priority", "-p"),
    sort: Optional[SortField] = Option(None, "--sort"),
    order: Optional[SortOrder] = Option(None, "--order", "-o"),
) -> None:
    """
    Listuje zadania.

    - Bez priorytetu/sortowania: z cache (kolejność createdAt desc), filtr statusu lokalnie.
    - Z priorytetem lub sortowaniem: zapytanie do API.
    """
    with error_panels(), signed_in(ctx) as cache:
        if priority is None and sort is None and order is None:
            items = cache.filter(status)
        else:
            items = cache.api.list_tasks(status=status, priority=priority, sort=sort, order=order)
    render_list(items, cache.clock.now())


@app.command("add")
def add(
    ctx: Context,
    title: str,
    desc: Optional[str] = Option(None, "--desc", "-d"),
    priority: Optional[TaskPriority] = Option(None, "--priority", "-p"),
    status: Optional[TaskStatus] = Option(None, "--status", "-s"),
    due: Optional[str] = Option(None, "--due", help="YYYY-MM-DD albo pełny ISO8601"),
    tag: Optional[list[str]] = Option(None, "--tag", "-t"),
) -> None:
    """Dodaje nowe zadanie."""
    fields = {"title": title}
    for name, value in (("description", desc), ("priority", priority), ("status", status), ("due_date", due), ("tags", tag)):
        if value is not None:
            fields[name] = value

    with error_panels(), signed_in(ctx) as cache:
        task = cache.create(fields)
    render_task(task, cache.clock.now(), title="✅ Dodano zadanie", border="green")


@app.command("show")
def show(ctx: Context, task_id: str) -> None:
    """Pokazuje szczegóły pojedynczego zadania (świeżo z API)."""
    with error_panels(task_id), signed_in(ctx) as cache:
        task = cache.api.get_task(resolve_id(cache, task_id))
    render_task(task, cache.clock.now())


@app.command("edit")
def edit(
    ctx: Context,
    task_id: str,
    title: Optional[str] = Option(None, "--title"),
    desc: Optional[str] = Option(None, "--desc", "-d"),
    priority: Optional[TaskPriority] = Option(None, "--priority", "-p"),
    due: Optional[str] = Option(None, "--due"),
    clear_due: bool = Option(False, "--clear-due", help="Usuwa termin"),
    tag: Optional[list[str]] = Option(None, "--tag", "-t", help="Zastępuje listę tagów"),
) -> None:
    """Zmienia tylko podane pola."""
    fields: dict = {}
    for name, value in (("title", title), ("description", desc), ("priority", priority), ("due_date", due), ("tags", tag)):
        if value is not None:
            fields[name] = value
    if clear_due:
        fields["due_date"] = None

    with error_panels(task_id), signed_in(ctx) as cache:
        task = cache.update(resolve_id(cache, task_id), fields)
    render_task(task, cache.clock.now(), title="✅ Zaktualizowano", border="green")


def _change_status(ctx: Context, task_id: str, status: TaskStatus) -> None:
    with error_panels(task_id), signed_in(ctx) as cache:
        task = cache.set_status(resolve_id(cache, task_id), status)
    console.print(Panel.fit(
        f"✅ Sukces! ID: {short_id(task.task_id)}\n[dim]Title:[/dim] {task.title}\nStatus: {color_status(task.status)}",
        title="Sukces",
        border_style="green",
    ))


@app.command("start")
def start(ctx: Context, task_id: str) -> None:
    """Oznacza zadanie jako w toku (status="in-progress")."""
    _change_status(ctx, task_id, TaskStatus.IN_PROGRESS)


@app.command("done")
def done(ctx: Context, task_id: str) -> None:
    """Oznacza zadanie jako zakończone (status="completed")."""
    _change_status(ctx, task_id, TaskStatus.COMPLETED)


@app.command("reopen")
def reopen(ctx: Context, task_id: str) -> None:
    """Przywraca zadanie do "todo"."""
    _change_status(ctx, task_id, TaskStatus.TODO)


@app.command("rm")
def rm(ctx: Context, task_id: str = Argument(...)) -> None:
    """Usuwa zadanie (bez kosza)."""
    with error_panels(task_id), signed_in(ctx) as cache:
        deleted = cache.delete(resolve_id(cache, task_id))
    console.print(Panel.fit(
        f"🟡 Zadanie usunięte\nID: {short_id(deleted)}",
        title="Usunięto",
        border_style="yellow",
    ))


@app.command("stats")
def stats(ctx: Context) -> None:
    """Statystyki: liczniki, procent ukończenia, zaległe i na dziś."""
    with error_panels(), signed_in(ctx) as cache:
        summary = cache.summary()

    table = Table(show_header=False, box=None)
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Total", str(summary.total))
    table.add_row(color_status(TaskStatus.TODO), str(summary.todo))
    table.add_row(color_status(TaskStatus.IN_PROGRESS), str(summary.in_progress))
    table.add_row(color_status(TaskStatus.COMPLETED), str(summary.completed))
    table.add_row(color_priority(TaskPriority.HIGH), str(summary.high_priority))
    table.add_row(color_priority(TaskPriority.MEDIUM), str(summary.medium_priority))
    table.add_row(color_priority(TaskPriority.LOW), str(summary.low_priority))
    table.add_row("Completion", f"{summary.completion_rate}%")
    table.add_row(paint("Overdue", TaskColor.RED), str(summary.overdue))
    table.add_row(paint("Due today", TaskColor.YELLOW), str(summary.due_today))
    console.print(Panel.fit(table, title="Statystyki", border_style="cyan"))

    overdue = cache.overdue()
    if overdue:
        console.print("\n⏰ Zaległe:")
        render_list(overdue, cache.clock.now())


if __name__ == "__main__":
    app()
