import pytest

from core.state_manager import ConnectionStatus, StateManager
from core.view_state import View, ViewController, select_view


@pytest.mark.parametrize("status, view", [
    (ConnectionStatus.IDLE, View.WELCOME),
    (ConnectionStatus.CONNECTING, View.WELCOME),
    (ConnectionStatus.CONNECTED, View.SESSION),
    (ConnectionStatus.DISCONNECTED, View.WELCOME),
])
def test_view_is_session_only_when_connected(status, view) -> None:
    assert select_view(status) == view


def test_controller_renders_only_on_view_change() -> None:
    manager = StateManager()
    renders = []
    controller = ViewController(manager, on_render=lambda old, new, seconds: renders.append((old, new, seconds)))

    manager.transition_to(ConnectionStatus.CONNECTING)
    manager.transition_to(ConnectionStatus.CONNECTED)
    manager.transition_to(ConnectionStatus.DISCONNECTED)
    manager.transition_to(ConnectionStatus.IDLE)

    assert renders == [
        (View.WELCOME, View.SESSION, 0.5),
        (View.SESSION, View.WELCOME, 0.5),
    ]
    assert controller.current_view == View.WELCOME


def test_current_view_follows_state_manager() -> None:
    manager = StateManager()
    controller = ViewController(manager)

    manager.transition_to(ConnectionStatus.CONNECTING)
    manager.transition_to(ConnectionStatus.CONNECTED)

    assert controller.current_view == View.SESSION


def test_detached_controller_stops_rendering() -> None:
    manager = StateManager()
    renders = []
    controller = ViewController(manager, on_render=lambda *args: renders.append(args))
    controller.detach()

    manager.transition_to(ConnectionStatus.CONNECTING)
    manager.transition_to(ConnectionStatus.CONNECTED)

    assert renders == []
