from enum import Enum


class SessionState(str, Enum):
    IDLE = "idle"
    MENU_SHOWN = "menu_shown"
    CLOSED = "closed"


# Closed is a soft close: a greeting or "menu" re-opens the flow.
# Idle is only ever produced by creating (or expiring) a session.
VALID_TRANSITIONS = {
    SessionState.IDLE: [SessionState.IDLE, SessionState.MENU_SHOWN, SessionState.CLOSED],
    SessionState.MENU_SHOWN: [SessionState.MENU_SHOWN, SessionState.CLOSED],
    SessionState.CLOSED: [SessionState.MENU_SHOWN, SessionState.CLOSED],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: SessionState, to_state: SessionState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: SessionState, to_state: SessionState) -> SessionState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def show_menu(current_state: SessionState) -> SessionState:
    """Menu was presented (greeting, "menu" or a numbered option)."""
    return transition(current_state, SessionState.MENU_SHOWN)


def close(current_state: SessionState) -> SessionState:
    """User chose the exit option."""
    return transition(current_state, SessionState.CLOSED)
