"""Application-level actions and their textual encoding.

Actions are the semantic layer routed to every component.  They are
decoupled from terminal mechanics: a key press becomes a ``QuitAction``
through the keybinding table, a timer tick becomes a ``TickAction``, and a
component can emit an ``ErrorAction`` without knowing who displays it.

The textual form is used by configuration files::

    Quit
    Error(could not reach host)
    Resize(120, 40)
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter

__all__ = [
    "Action",
    "ActionAdapter",
    "ActionField",
    "ActionParseError",
    "ErrorAction",
    "HelpAction",
    "QuitAction",
    "RefreshAction",
    "RenderAction",
    "ResizeAction",
    "ResumeAction",
    "SuspendAction",
    "TickAction",
    "encode_action",
    "parse_action",
]

_U16_MAX = 65535
_UNSIGNED_RE = re.compile(r"\+?[0-9]+")


class ActionParseError(ValueError):
    """Raised when a textual action cannot be decoded."""


# --- Variants ---


class TickAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Tick"] = "Tick"


class RenderAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Render"] = "Render"


class ResizeAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Resize"] = "Resize"
    width: int = Field(ge=0, le=_U16_MAX)
    height: int = Field(ge=0, le=_U16_MAX)


class SuspendAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Suspend"] = "Suspend"


class ResumeAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Resume"] = "Resume"


class QuitAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Quit"] = "Quit"


class RefreshAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Refresh"] = "Refresh"


class ErrorAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Error"] = "Error"
    message: str


class HelpAction(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["Help"] = "Help"


Action = (
    TickAction
    | RenderAction
    | ResizeAction
    | SuspendAction
    | ResumeAction
    | QuitAction
    | RefreshAction
    | ErrorAction
    | HelpAction
)

_BARE_ACTIONS: dict[str, type[BaseModel]] = {
    "Tick": TickAction,
    "Render": RenderAction,
    "Suspend": SuspendAction,
    "Resume": ResumeAction,
    "Quit": QuitAction,
    "Refresh": RefreshAction,
    "Help": HelpAction,
}


# --- Textual encoding ---


def encode_action(action: Action) -> str:
    """Return the canonical textual form of *action*."""
    if isinstance(action, ErrorAction):
        return f"Error({action.message})"
    if isinstance(action, ResizeAction):
        return f"Resize({action.width}, {action.height})"
    return action.type


def _parse_u16(field: str, text: str) -> int:
    value = field.strip()
    if not _UNSIGNED_RE.fullmatch(value):
        raise ActionParseError(f"Invalid Resize dimension {value!r} in {text!r}")
    number = int(value)
    if number > _U16_MAX:
        raise ActionParseError(
            f"Resize dimension {value!r} out of range 0..{_U16_MAX} in {text!r}"
        )
    return number


def _payload(text: str, name: str) -> str:
    """Strip ``name(`` and the closing parenthesis, exactly once each."""
    if not text.endswith(")"):
        raise ActionParseError(f"Missing closing parenthesis in {name} action: {text!r}")
    return text[len(name) + 1 : -1]


def parse_action(text: str) -> Action:
    """Decode the textual form produced by :func:`encode_action`.

    Raises :class:`ActionParseError` naming the offending token for unknown
    variants and malformed payloads.
    """
    bare = _BARE_ACTIONS.get(text)
    if bare is not None:
        return bare()  # type: ignore[return-value]

    if text.startswith("Error("):
        return ErrorAction(message=_payload(text, "Error"))

    if text.startswith("Resize("):
        parts = _payload(text, "Resize").split(",")
        if len(parts) != 2:
            raise ActionParseError(f"Invalid Resize format: {text!r}")
        return ResizeAction(
            width=_parse_u16(parts[0], text),
            height=_parse_u16(parts[1], text),
        )

    raise ActionParseError(f"Unknown Action variant: {text!r}")


def _coerce_action(value: Any) -> Any:
    if isinstance(value, str):
        return parse_action(value)
    return value


ActionField = Annotated[
    Annotated[Action, Field(discriminator="type")],
    BeforeValidator(_coerce_action),
]
"""Field type accepting an action as a model, a dict or its textual form."""

ActionAdapter: TypeAdapter[Action] = TypeAdapter(ActionField)
