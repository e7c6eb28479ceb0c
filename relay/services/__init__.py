from relay.services.result import Result
from relay.services.state_machine import (
    InvalidTransitionError,
    SessionState,
    can_transition,
    close,
    show_menu,
    transition,
)
