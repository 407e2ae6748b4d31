from core.state_manager import ConnectionStatus, StateManager
from events import event_bus, EventTypes


def test_starts_idle() -> None:
    manager = StateManager()

    assert manager.get_state() == ConnectionStatus.IDLE
    assert not manager.is_connected()


def test_valid_transition_notifies_listeners() -> None:
    manager = StateManager()
    seen = []
    manager.add_listener(lambda old, new: seen.append((old, new)))

    assert manager.transition_to(ConnectionStatus.CONNECTING, "user connect")
    assert manager.transition_to(ConnectionStatus.CONNECTED)

    assert seen == [
        (ConnectionStatus.IDLE, ConnectionStatus.CONNECTING),
        (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED),
    ]
    assert manager.is_connected()


def test_invalid_transition_is_rejected() -> None:
    manager = StateManager()

    assert not manager.transition_to(ConnectionStatus.CONNECTED)
    assert manager.get_state() == ConnectionStatus.IDLE
    assert manager.get_transition_history() == []


def test_connecting_may_be_superseded() -> None:
    manager = StateManager()
    manager.transition_to(ConnectionStatus.CONNECTING)

    assert manager.transition_to(ConnectionStatus.CONNECTING, "newer attempt")
    assert manager.is_busy()


def test_listener_errors_do_not_block_others() -> None:
    manager = StateManager()
    seen = []

    def broken(old, new):
        raise RuntimeError("boom")

    manager.add_listener(broken)
    manager.add_listener(lambda old, new: seen.append(new))

    manager.transition_to(ConnectionStatus.CONNECTING)

    assert seen == [ConnectionStatus.CONNECTING]


def test_history_and_stats() -> None:
    manager = StateManager(max_history=2)
    manager.transition_to(ConnectionStatus.CONNECTING, "one")
    manager.transition_to(ConnectionStatus.IDLE, "two")
    manager.transition_to(ConnectionStatus.CONNECTING, "three")
    manager.record_error(ValueError("bad token"))

    history = manager.get_transition_history()
    stats = manager.get_stats()

    assert [entry["reason"] for entry in history] == ["two", "three"]
    assert stats["current_state"] == "connecting"
    assert stats["error_count"] == 1
    assert stats["last_error"] == "bad token"


def test_transition_emits_status_event() -> None:
    manager = StateManager()

    manager.transition_to(ConnectionStatus.CONNECTING, "event check")
    assert event_bus.wait_until_idle(timeout=2.0)

    events = event_bus.get_recent_events(count=20, event_type=EventTypes.CONNECTION_STATUS_CHANGED)
    assert any(e["data"]["reason"] == "event check" and e["data"]["to_state"] == "connecting" for e in events)
