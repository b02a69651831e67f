import logging

from taskboard.adapters.notifications import InProcessChangeHub
from taskboard.ports.notifications import TaskChangeEvent, TaskEventType


def event(owner: str, kind: TaskEventType = TaskEventType.CREATED) -> TaskChangeEvent:
    return TaskChangeEvent(kind, owner, {"taskId": "t-1"})


def test_publish_reaches_only_owner_subscribers():
    # Arrange
    hub = InProcessChangeHub()
    ala, ola = [], []
    hub.subscribe("ala", ala.append)
    hub.subscribe("ola", ola.append)

    # Act
    hub.publish(event("ala"))

    # Assert
    assert [e.owner_id for e in ala] == ["ala"]
    assert ola == []


def test_every_session_of_owner_gets_event():
    hub = InProcessChangeHub()
    tab1, tab2 = [], []
    hub.subscribe("ala", tab1.append)
    hub.subscribe("ala", tab2.append)

    hub.publish(event("ala", TaskEventType.DELETED))

    assert len(tab1) == len(tab2) == 1
    assert hub.subscriber_count("ala") == 2


def test_unsubscribe_stops_delivery():
    hub = InProcessChangeHub()
    seen = []
    unsubscribe = hub.subscribe("ala", seen.append)

    unsubscribe()
    unsubscribe()
    hub.publish(event("ala"))

    assert seen == []
    assert hub.subscriber_count("ala") == 0


def test_publish_without_subscribers_is_noop():
    hub = InProcessChangeHub()

    hub.publish(event("nikt"))

    assert hub.diagnostics()["published"] == 1


def test_failing_subscriber_is_skipped_and_logged(caplog):
    # Arrange
    hub = InProcessChangeHub()
    seen = []

    def broken(_):
        raise RuntimeError("socket closed")

    hub.subscribe("ala", broken)
    hub.subscribe("ala", seen.append)

    # Act
    with caplog.at_level(logging.WARNING, logger="taskboard.adapters.notifications"):
        hub.publish(event("ala"))

    # Assert
    assert len(seen) == 1
    assert hub.diagnostics()["failed_deliveries"] == 1
    assert "subscriber failed" in caplog.text
