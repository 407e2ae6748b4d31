"""
Two-state view projection over connection status
"""

from enum import Enum
from typing import Callable, Optional

from config import VIEW_CONFIG
from core.logging_config import get_logger
from core.state_manager import ConnectionStatus, StateManager
from events import event_bus, EventTypes


class View(Enum):
    WELCOME = "welcome"
    SESSION = "session"


def select_view(status: ConnectionStatus) -> View:
    """The session view is shown exactly when connected"""
    return View.SESSION if status == ConnectionStatus.CONNECTED else View.WELCOME


# (old_view, new_view, transition_seconds)
RenderCallback = Callable[[View, View, float], None]


class ViewController:
    """Re-renders when the projected view changes

    Holds no view state of its own; the current view is always computed
    from the state manager.
    """

    def __init__(self, state_manager: StateManager,
                 on_render: Optional[RenderCallback] = None,
                 transition_seconds: float = VIEW_CONFIG["transition_seconds"]):
        self.logger = get_logger(__name__)
        self.state_manager = state_manager
        self.on_render = on_render
        self.transition_seconds = transition_seconds
        self.state_manager.add_listener(self._handle_status_change)

    @property
    def current_view(self) -> View:
        return select_view(self.state_manager.get_state())

    def _handle_status_change(self, old_state: ConnectionStatus, new_state: ConnectionStatus):
        old_view = select_view(old_state)
        new_view = select_view(new_state)
        if old_view == new_view:
            return

        self.logger.debug(f"View change: {old_view.value} → {new_view.value}")
        event_bus.emit(EventTypes.VIEW_CHANGED, {
            "from_view": old_view.value,
            "to_view": new_view.value
        }, source="view_controller")

        if self.on_render:
            self.on_render(old_view, new_view, self.transition_seconds)

    def detach(self):
        self.state_manager.remove_listener(self._handle_status_change)
