import pytest
from datetime import datetime, timedelta, timezone
from taskboard.adapters.sql.engine import create_engine, decode_dt, encode_dt
from taskboard.adapters.sql.task_repo import SqlTaskRepository
from taskboard.adapters.sql.user_repo import SqlUserRepository
from taskboard.domain.task import Task, TaskId, UserId
from taskboard.domain.user import User
from taskboard.domain.enums import SortField, SortOrder, TaskPriority, TaskStatus
from taskboard.domain.errors import TaskNotFoundError, TaskAlreadyExistsError, UserAlreadyExistsError
from taskboard.domain.stats import TaskStats

BASE = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
ALA = UserId("user-ala")
OLA = UserId("user-ola")


@pytest.fixture
def tmp_repo(tmp_path):
    """Repozytorium na świeżej tymczasowej bazie."""
    db_path = tmp_path / "tasks.db"
    repo = SqlTaskRepository(db_path)
    return repo


def make_task(task_id: str, title: str = "Test", owner: UserId = ALA, minutes: int = 0, **fields) -> Task:
    created = BASE + timedelta(minutes=minutes)
    return Task(
        task_id=TaskId(task_id),
        owner_id=owner,
        title=title,
        description="desc",
        created_at=created,
        updated_at=created,
        **fields,
    )


def test_add_and_get(tmp_repo):
    task = make_task(
        "id-1",
        tags=("dom", "zakupy"),
        due_date=BASE + timedelta(days=2),
        status=TaskStatus.COMPLETED,
        is_completed=True,
        completed_at=BASE,
    )
    tmp_repo.add(task)

    fetched = tmp_repo.get(ALA, TaskId("id-1"))
    assert fetched == task


def test_get_other_owner_returns_none(tmp_repo):
    tmp_repo.add(make_task("id-1"))

    assert tmp_repo.get(OLA, TaskId("id-1")) is None
    assert tmp_repo.get(ALA, TaskId("id-404")) is None


def test_add_duplicate_raises(tmp_repo):
    task = make_task("dup-1")
    tmp_repo.add(task)
    with pytest.raises(TaskAlreadyExistsError):
        tmp_repo.add(task)


def test_remove_deletes(tmp_repo):
    task = make_task("rm-1")
    tmp_repo.add(task)
    tmp_repo.remove(ALA, TaskId("rm-1"))
    assert tmp_repo.get(ALA, TaskId("rm-1")) is None
    with pytest.raises(TaskNotFoundError):
        tmp_repo.remove(ALA, TaskId("rm-1"))


def test_remove_other_owner_raises_and_keeps_row(tmp_repo):
    tmp_repo.add(make_task("rm-2"))

    with pytest.raises(TaskNotFoundError):
        tmp_repo.remove(OLA, TaskId("rm-2"))
    assert tmp_repo.get(ALA, TaskId("rm-2")) is not None


def test_update_changes_status(tmp_repo):
    task = make_task("up-1")
    tmp_repo.add(task)

    updated = make_task(
        "up-1",
        status=TaskStatus.COMPLETED,
        is_completed=True,
        completed_at=BASE + timedelta(hours=1),
    )
    tmp_repo.update(updated)

    result = tmp_repo.get(ALA, task.task_id)
    assert result.status == TaskStatus.COMPLETED
    assert result.completed_at == BASE + timedelta(hours=1)


def test_update_other_owner_raises(tmp_repo):
    tmp_repo.add(make_task("up-2"))

    with pytest.raises(TaskNotFoundError):
        tmp_repo.update(make_task("up-2", title="przejęte", owner=OLA))
    assert tmp_repo.get(ALA, TaskId("up-2")).title == "Test"


def test_list_is_scoped_and_newest_first(tmp_repo):
    tmp_repo.add(make_task("t1", "A", minutes=0))
    tmp_repo.add(make_task("t2", "B", minutes=1))
    tmp_repo.add(make_task("t3", "C", owner=OLA, minutes=2))

    items = tmp_repo.list_for_owner(ALA)

    assert [t.task_id for t in items] == ["t2", "t1"]


def test_list_filters(tmp_repo):
    tmp_repo.add(make_task("t1", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH))
    tmp_repo.add(make_task("t2", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.LOW, minutes=1))
    tmp_repo.add(make_task("t3", priority=TaskPriority.HIGH, minutes=2))

    in_progress = tmp_repo.list_for_owner(ALA, status=TaskStatus.IN_PROGRESS)
    high_in_progress = tmp_repo.list_for_owner(ALA, status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH)

    assert {t.task_id for t in in_progress} == {"t1", "t2"}
    assert [t.task_id for t in high_in_progress] == ["t1"]


def test_sort_by_priority_uses_rank(tmp_repo):
    tmp_repo.add(make_task("t1", "A", priority=TaskPriority.MEDIUM))
    tmp_repo.add(make_task("t2", "B", priority=TaskPriority.HIGH, minutes=1))
    tmp_repo.add(make_task("t3", "C", priority=TaskPriority.LOW, minutes=2))

    asc = tmp_repo.list_for_owner(ALA, sort=SortField.PRIORITY, order=SortOrder.ASC)
    desc = tmp_repo.list_for_owner(ALA, sort=SortField.PRIORITY, order=SortOrder.DESC)

    assert [t.priority for t in asc] == [TaskPriority.LOW, TaskPriority.MEDIUM, TaskPriority.HIGH]
    assert [t.task_id for t in desc] == ["t2", "t1", "t3"]


def test_sort_by_title_and_due_date(tmp_repo):
    tmp_repo.add(make_task("t1", "Banan", due_date=BASE + timedelta(days=3)))
    tmp_repo.add(make_task("t2", "Arbuz", due_date=BASE + timedelta(days=1), minutes=1))
    tmp_repo.add(make_task("t3", "Cytryna", minutes=2))

    by_title = tmp_repo.list_for_owner(ALA, sort=SortField.TITLE, order=SortOrder.ASC)
    by_due = tmp_repo.list_for_owner(ALA, sort=SortField.DUE_DATE, order=SortOrder.ASC)

    assert [t.title for t in by_title] == ["Arbuz", "Banan", "Cytryna"]
    # brak terminu jak NULL: pierwszy przy ASC
    assert [t.task_id for t in by_due] == ["t3", "t2", "t1"]


def test_stats_group_counts(tmp_repo):
    tmp_repo.add(make_task("t1", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH, is_completed=True, completed_at=BASE))
    tmp_repo.add(make_task("t2", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH))
    tmp_repo.add(make_task("t3", priority=TaskPriority.LOW))
    tmp_repo.add(make_task("t4", owner=OLA))

    assert tmp_repo.stats_for_owner(ALA) == TaskStats(
        total=3, completed=1, in_progress=1, todo=1,
        high_priority=2, medium_priority=0, low_priority=1,
    )
    assert tmp_repo.stats_for_owner(UserId("nobody")) == TaskStats()


def test_data_survives_new_repository(tmp_path):
    db_path = tmp_path / "nested" / "tasks.db"
    SqlTaskRepository(db_path).add(make_task("keep-1"))

    reopened = SqlTaskRepository(db_path)

    assert reopened.get(ALA, TaskId("keep-1")).title == "Test"


def test_user_repository_shares_engine():
    engine = create_engine("sqlite://")
    tasks, users = SqlTaskRepository(engine), SqlUserRepository(engine)
    user = User(UserId("u-1"), "ala@example.com", "Ala", "salt$hash", BASE)

    users.add(user)
    users.add_session("tok-1", user.user_id, BASE)
    tasks.add(make_task("t1", owner=user.user_id))

    assert users.get_by_email("ALA@example.com") == user
    assert users.user_id_for_token("tok-1") == "u-1"
    with pytest.raises(UserAlreadyExistsError):
        users.add(User(UserId("u-2"), "ala@example.com", "Inna Ala", "x$y", BASE))

    users.remove_session("tok-1")
    assert users.user_id_for_token("tok-1") is None
    assert len(tasks.list_for_owner(user.user_id)) == 1


def test_early_year_due_date_round_trips(tmp_repo):
    # rok < 1000 musi zostać zapisany z zerami wiodącymi
    early = datetime(999, 5, 1, tzinfo=timezone.utc)
    tmp_repo.add(make_task("old-1", due_date=early))
    tmp_repo.add(make_task("new-1", due_date=BASE, minutes=1))

    fetched = tmp_repo.get(ALA, TaskId("old-1"))
    by_due = tmp_repo.list_for_owner(ALA, sort=SortField.DUE_DATE, order=SortOrder.ASC)

    assert fetched.due_date == early
    assert [t.task_id for t in by_due] == ["old-1", "new-1"]


def test_encode_dt_is_fixed_width():
    assert encode_dt(datetime(999, 5, 1, tzinfo=timezone.utc)) == "0999-05-01T00:00:00.000000Z"
    assert encode_dt(BASE) == "2025-01-01T12:00:00.000000Z"
    assert decode_dt(encode_dt(BASE)) == BASE
