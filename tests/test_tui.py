"""Tests for feedterm.tui -- lifecycle controller and differential drawing.

Uses the VirtualTerminal so no real terminal is touched.
"""

from __future__ import annotations

import asyncio
import logging
import signal

import pytest

from feedterm.events import InitEvent, KeyEvent, KeyInputEvent
from feedterm.frame import Frame
from feedterm.tui import Tui

from .scripted_input import ScriptedInput
from .virtual_terminal import VirtualTerminal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_tui(
    terminal: VirtualTerminal | None = None,
    items: list | None = None,
) -> tuple[Tui, VirtualTerminal, list[ScriptedInput]]:
    vt = terminal or VirtualTerminal(rows=5, columns=20)
    sources: list[ScriptedInput] = []

    def factory(_terminal) -> ScriptedInput:
        source = ScriptedInput(items or [], hold_open=True)
        sources.append(source)
        return source

    tui = Tui(terminal=vt, input_factory=factory).tick_rate(1).frame_rate(1)
    return tui, vt, sources


def lines_renderer(lines: list[str]):
    def render(frame: Frame) -> None:
        frame.render_text(frame.area, lines)

    return render


# ---------------------------------------------------------------------------
# Terminal session
# ---------------------------------------------------------------------------


class TestSession:
    @pytest.mark.asyncio
    async def test_enter_prepares_the_terminal(self) -> None:
        tui, vt, _ = make_tui()
        await tui.enter()
        try:
            assert vt.is_raw_mode_enabled()
            assert vt.alternate_screen
            assert not vt.cursor_visible
            assert not vt.mouse_captured
            assert not vt.bracketed_paste
        finally:
            await tui.exit()

    @pytest.mark.asyncio
    async def test_mouse_and_paste_are_opt_in(self) -> None:
        tui, vt, _ = make_tui()
        tui.mouse(True).paste(True)
        await tui.enter()
        assert vt.mouse_captured
        assert vt.bracketed_paste
        await tui.exit()
        assert not vt.mouse_captured
        assert not vt.bracketed_paste

    @pytest.mark.asyncio
    async def test_exit_restores_in_order(self) -> None:
        tui, vt, _ = make_tui()
        tui.mouse(True).paste(True)
        await tui.enter()
        vt.calls.clear()
        await tui.exit()
        assert vt.calls == [
            "disable_bracketed_paste",
            "disable_mouse_capture",
            "leave_alternate_screen",
            "show_cursor",
            "disable_raw_mode",
        ]

    @pytest.mark.asyncio
    async def test_exit_is_idempotent(self) -> None:
        tui, vt, sources = make_tui()
        await tui.enter()
        await tui.exit()
        calls = list(vt.calls)
        await tui.exit()
        assert vt.calls == calls
        assert not vt.is_raw_mode_enabled()
        assert sources[0].closed

    @pytest.mark.asyncio
    async def test_exit_before_enter_is_safe(self) -> None:
        tui, vt, _ = make_tui()
        await tui.exit()
        assert vt.calls == []

    @pytest.mark.asyncio
    async def test_context_manager_restores_on_exception(self) -> None:
        tui, vt, _ = make_tui()
        with pytest.raises(RuntimeError, match="boom"):
            async with tui:
                assert vt.is_raw_mode_enabled()
                raise RuntimeError("boom")
        assert not vt.is_raw_mode_enabled()
        assert vt.cursor_visible

    @pytest.mark.asyncio
    async def test_context_manager_restores_on_cancellation(self) -> None:
        tui, vt, _ = make_tui()
        entered = asyncio.Event()

        async def body() -> None:
            async with tui:
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(body())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not vt.is_raw_mode_enabled()

    @pytest.mark.asyncio
    async def test_events_flow_after_enter(self) -> None:
        tui, _, _ = make_tui(items=[KeyEvent(code="a")])
        async with tui:
            assert await tui.next() == InitEvent()
            seen = [await tui.next() for _ in range(3)]
        assert KeyInputEvent(key=KeyEvent(code="a")) in seen

    @pytest.mark.asyncio
    async def test_suspend_and_resume(self, monkeypatch) -> None:
        raised: list[int] = []
        monkeypatch.setattr(signal, "raise_signal", raised.append)
        tui, vt, sources = make_tui()

        await tui.enter()
        await tui.suspend()
        assert raised == [signal.SIGTSTP]
        assert not vt.is_raw_mode_enabled()

        await tui.resume()
        assert vt.is_raw_mode_enabled()
        assert len(sources) == 2
        await tui.exit()


# ---------------------------------------------------------------------------
# Pump control
# ---------------------------------------------------------------------------


class TestPumpControl:
    @pytest.mark.asyncio
    async def test_start_supersedes_the_running_pump(self) -> None:
        tui, _, _ = make_tui()
        await tui.enter()
        first = tui.task
        tui.start()
        await asyncio.wait_for(first, 0.1)
        assert tui.task is not first
        assert not tui.task.done()
        await tui.exit()
        assert tui.task.done()

    @pytest.mark.asyncio
    async def test_stop_without_task(self) -> None:
        tui, _, _ = make_tui()
        await tui.stop()

    @pytest.mark.asyncio
    async def test_stop_aborts_a_task_ignoring_the_token(self, caplog) -> None:
        tui, _, _ = make_tui()
        task = asyncio.create_task(asyncio.sleep(10))
        tui._task = task

        await tui.stop()
        assert task.cancelled()
        assert "Failed to abort task" not in caplog.text

    @pytest.mark.asyncio
    async def test_stop_gives_up_on_a_task_that_ignores_abort(self, caplog) -> None:
        tui, _, _ = make_tui()
        release = asyncio.Event()

        async def stubborn() -> None:
            while not release.is_set():
                try:
                    await asyncio.sleep(0.005)
                except asyncio.CancelledError:
                    continue

        task = asyncio.create_task(stubborn())
        tui._task = task
        loop = asyncio.get_running_loop()
        started = loop.time()

        with caplog.at_level(logging.ERROR, logger="feedterm.tui"):
            await tui.stop()

        assert loop.time() - started < 0.5
        assert not task.done()
        assert "Failed to abort task in 100 milliseconds" in caplog.text

        release.set()
        await asyncio.wait_for(task, 1.0)


# ---------------------------------------------------------------------------
# Differential rendering
# ---------------------------------------------------------------------------


class TestDraw:
    def test_size_matches_terminal(self) -> None:
        tui, _, _ = make_tui(VirtualTerminal(rows=7, columns=33))
        area = tui.size()
        assert (area.x, area.y, area.width, area.height) == (0, 0, 33, 7)

    def test_first_draw_is_full(self) -> None:
        tui, vt, _ = make_tui(VirtualTerminal(rows=3, columns=10))
        frame = tui.draw(lines_renderer(["a", "b", "c"]))
        assert tui.full_redraws == 1
        assert "\x1b[2J" in vt.output
        assert frame.lines() == ["a" + " " * 9, "b" + " " * 9, "c" + " " * 9]

    def test_only_changed_rows_are_rewritten(self) -> None:
        tui, vt, _ = make_tui(VirtualTerminal(rows=3, columns=10))
        tui.draw(lines_renderer(["a", "b", "c"]))
        vt.clear_buffer()

        tui.draw(lines_renderer(["a", "X", "c"]))
        assert tui.full_redraws == 1
        assert "\x1b[2J" not in vt.output
        assert "\x1b[2;1HX" in vt.output
        assert "\x1b[1;1H" not in vt.output
        assert "\x1b[3;1H" not in vt.output

    def test_unchanged_frame_writes_nothing(self) -> None:
        tui, vt, _ = make_tui(VirtualTerminal(rows=2, columns=5))
        tui.draw(lines_renderer(["x"]))
        vt.clear_buffer()
        tui.draw(lines_renderer(["x"]))
        assert vt.write_count == 0

    def test_resize_forces_full_redraw(self) -> None:
        tui, vt, _ = make_tui(VirtualTerminal(rows=2, columns=5))
        tui.draw(lines_renderer(["x"]))
        tui.resize(5, 2)
        vt.clear_buffer()
        tui.draw(lines_renderer(["x"]))
        assert tui.full_redraws == 2
        assert "\x1b[2J" in vt.output

    def test_terminal_size_change_forces_full_redraw(self) -> None:
        vt = VirtualTerminal(rows=2, columns=5)
        tui, _, _ = make_tui(vt)
        tui.draw(lines_renderer(["x"]))
        vt.rows = 4
        tui.draw(lines_renderer(["x"]))
        assert tui.full_redraws == 2
