"""Tests for feedterm.action -- textual encoding of actions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from feedterm.action import (
    ActionAdapter,
    ActionParseError,
    ErrorAction,
    HelpAction,
    QuitAction,
    RefreshAction,
    RenderAction,
    ResizeAction,
    ResumeAction,
    SuspendAction,
    TickAction,
    encode_action,
    parse_action,
)

ALL_ACTIONS = [
    TickAction(),
    RenderAction(),
    ResizeAction(width=120, height=40),
    SuspendAction(),
    ResumeAction(),
    QuitAction(),
    RefreshAction(),
    ErrorAction(message="could not reach host"),
    HelpAction(),
]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestEncode:
    def test_bare_variants_encode_as_their_name(self) -> None:
        assert encode_action(QuitAction()) == "Quit"
        assert encode_action(TickAction()) == "Tick"
        assert encode_action(HelpAction()) == "Help"

    def test_error_wraps_message(self) -> None:
        assert encode_action(ErrorAction(message="boom")) == "Error(boom)"

    def test_resize_lists_both_dimensions(self) -> None:
        assert encode_action(ResizeAction(width=80, height=24)) == "Resize(80, 24)"

    @pytest.mark.parametrize("action", ALL_ACTIONS, ids=lambda a: a.type)
    def test_round_trip(self, action) -> None:
        assert parse_action(encode_action(action)) == action

    def test_error_message_with_parentheses_round_trips(self) -> None:
        action = ErrorAction(message="failed (twice))")
        assert parse_action(encode_action(action)) == action

    def test_empty_error_message_round_trips(self) -> None:
        assert parse_action("Error()") == ErrorAction(message="")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestParse:
    def test_resize_tolerates_spaces(self) -> None:
        assert parse_action("Resize( 10 ,20 )") == ResizeAction(width=10, height=20)

    def test_resize_accepts_plus_sign(self) -> None:
        assert parse_action("Resize(+1,2)") == ResizeAction(width=1, height=2)

    def test_resize_bounds(self) -> None:
        assert parse_action("Resize(0, 65535)") == ResizeAction(width=0, height=65535)

    @pytest.mark.parametrize(
        "text",
        [
            "Resize(1)",
            "Resize(1,2,3)",
            "Resize(a,b)",
            "Resize(-1,2)",
            "Resize(1,65536)",
            "Resize(1,2",
            "Error(unterminated",
            "Bogus",
            "quit",
            " Quit",
            "",
        ],
    )
    def test_malformed_text_raises(self, text: str) -> None:
        with pytest.raises(ActionParseError):
            parse_action(text)

    def test_unknown_variant_names_the_token(self) -> None:
        with pytest.raises(ActionParseError, match="Bogus"):
            parse_action("Bogus")

    def test_parse_error_is_a_value_error(self) -> None:
        assert issubclass(ActionParseError, ValueError)


# ---------------------------------------------------------------------------
# Pydantic adapter
# ---------------------------------------------------------------------------


class TestActionAdapter:
    def test_validates_text(self) -> None:
        assert ActionAdapter.validate_python("Quit") == QuitAction()

    def test_validates_dict(self) -> None:
        assert ActionAdapter.validate_python({"type": "Resize", "width": 3, "height": 4}) == (
            ResizeAction(width=3, height=4)
        )

    def test_bad_text_is_a_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            ActionAdapter.validate_python("Nope")

    def test_actions_are_immutable(self) -> None:
        action = ErrorAction(message="x")
        with pytest.raises(ValidationError):
            action.message = "y"  # type: ignore[misc]
