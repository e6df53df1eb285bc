"""
Host integration: polling, translation, write relay and status.

Architecture:
    Locator -> Pairing -> PollScheduler -> StateTranslator -> host
    host write -> CommandRelay -> bridge -> CommandRelay -> host
"""

from .delta import Delta, NormalizedValue
from .status import StatusReporter, NOT_STARTED
from .relay import (
    ActionState,
    CommandRelay,
    RegisteredWriteHandler,
    WritableAttribute,
    WRITABLE_ATTRIBUTES,
)
from .translator import (
    StateTranslator,
    TranslationResult,
    camel_case,
    normalize_hue,
)
from .scheduler import PollScheduler
from .session import HueSession, SessionState
from .plugin import HuePlugin


__all__ = [
    "Delta",
    "NormalizedValue",
    "StatusReporter",
    "NOT_STARTED",
    "ActionState",
    "CommandRelay",
    "RegisteredWriteHandler",
    "WritableAttribute",
    "WRITABLE_ATTRIBUTES",
    "StateTranslator",
    "TranslationResult",
    "camel_case",
    "normalize_hue",
    "PollScheduler",
    "HueSession",
    "SessionState",
    "HuePlugin",
]
