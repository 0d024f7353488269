"""Tests for the request hook system."""

from __future__ import annotations

import logging

import pytest

from quizsage.hooks import HookContext, HookRunner, RequestHook, TraceHook
from quizsage.output import OutputManager, set_output


class _Recorder(RequestHook):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    def on_request(self, ctx: HookContext) -> None:
        self.log.append(f"{self.name}:request")

    def on_response(self, ctx: HookContext) -> None:
        self.log.append(f"{self.name}:response")

    def on_error(self, ctx: HookContext) -> None:
        self.log.append(f"{self.name}:error:{ctx.error}")


class _Exploding(RequestHook):
    def on_request(self, ctx: HookContext) -> None:
        raise RuntimeError("hook blew up")


class TestHookContext:
    def test_defaults(self) -> None:
        ctx = HookContext()
        assert ctx.method == ""
        assert ctx.status_code == 0
        assert ctx.cookies == {}
        assert ctx.error is None

    def test_cookie_dicts_are_not_shared(self) -> None:
        first, second = HookContext(), HookContext()
        first.cookies["theme"] = "dark"
        assert second.cookies == {}


class TestRequestHook:
    def test_base_stages_are_no_ops(self) -> None:
        hook = RequestHook()
        ctx = HookContext(method="get", url="https://api.test:443/x")
        hook.on_request(ctx)
        hook.on_response(ctx)
        hook.on_error(ctx)
        assert ctx == HookContext(method="get", url="https://api.test:443/x")


class TestHookRunner:
    def test_runs_in_registration_order(self) -> None:
        log: list[str] = []
        runner = HookRunner([_Recorder("a", log), _Recorder("b", log)])
        ctx = HookContext()
        runner.run_request(ctx)
        runner.run_response(ctx)
        assert log == ["a:request", "b:request", "a:response", "b:response"]

    def test_run_error_sets_error_on_context(self) -> None:
        log: list[str] = []
        runner = HookRunner([_Recorder("a", log)])
        ctx = HookContext()
        runner.run_error(ctx, ValueError("bad"))
        assert isinstance(ctx.error, ValueError)
        assert log == ["a:error:bad"]

    def test_failing_hook_is_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        log: list[str] = []
        runner = HookRunner([_Exploding(), _Recorder("after", log)])
        with caplog.at_level(logging.ERROR, logger="quizsage.hooks"):
            runner.run_request(HookContext())
        assert log == ["after:request"]
        assert "on_request" in caplog.text
        assert "hook blew up" in caplog.text

    def test_hooks_property_is_a_copy(self) -> None:
        runner = HookRunner([RequestHook()])
        runner.hooks.clear()
        assert len(runner.hooks) == 1

    def test_empty_runner(self) -> None:
        HookRunner().run_request(HookContext())


class TestTraceHook:
    def test_request_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True, verbose=True))
        TraceHook().on_request(
            HookContext(method="post", url="https://quizsage.org:443/api/v1/user/login")
        )
        assert "=> POST https://quizsage.org:443/api/v1/user/login" in capsys.readouterr().err

    def test_error_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True, verbose=True))
        TraceHook().on_error(
            HookContext(method="get", url="https://api.test:443/x", error=RuntimeError("down"))
        )
        assert "<= GET https://api.test:443/x failed: down" in capsys.readouterr().err

    def test_silent_without_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True))
        TraceHook().on_request(HookContext(method="get", url="https://api.test:443/x"))
        assert capsys.readouterr().err == ""
