"""Domain models for tabwindow.

Control events decoded from browser messages plus the session state and
lifecycle event enumerations. All models use Pydantic v2 for validation.
"""

from tabwindow.domain.models import (
    ControlEvent,
    ExitEvent,
    GenericControlEvent,
    KeyEvent,
    PointerEvent,
    SessionEvent,
    SessionState,
)

__all__ = [
    "ControlEvent",
    "ExitEvent",
    "GenericControlEvent",
    "KeyEvent",
    "PointerEvent",
    "SessionEvent",
    "SessionState",
]
