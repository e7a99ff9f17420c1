"""Unit tests for the reporting handler wrapper and timeout warning."""

import asyncio
import inspect
import threading

import pytest

from lambdawatch.core.deadline import TimeoutWarning
from lambdawatch.core.invocation import LocalInvocationContext
from lambdawatch.core.models import Level, WrapOptions
from lambdawatch.core.wrapper import wrap_reporting_handler
from lambdawatch.tests.fakes import FakeTelemetryBackend, ManualTimerFactory


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def backend(timers) -> FakeTelemetryBackend:
    return FakeTelemetryBackend(timer_factory=timers)


@pytest.fixture
def options() -> WrapOptions:
    return WrapOptions(timeout_warning_limit_ms=500, flush_timeout_ms=2000)


class TestSyncWrapper:
    """Test wrapping of plain function handlers."""

    def test_preserves_signature(self, backend, options, timers) -> None:
        def handler(event, context, extra=None):
            return extra

        wrapped = wrap_reporting_handler(handler, backend, options, timers)

        assert inspect.signature(wrapped) == inspect.signature(handler)
        assert wrapped.__wrapped__ is handler
        assert wrapped({}, None, extra="x") == "x"

    def test_single_argument_handler(self, backend, options, timers) -> None:
        wrapped = wrap_reporting_handler(lambda event: event["n"] * 2, backend, options, timers)
        assert wrapped({"n": 21}) == 42

    def test_invocation_scope_tagged_from_context(self, backend, options, timers) -> None:
        context = LocalInvocationContext(function_name="webhook-handler", aws_request_id="req-1")

        def handler(event, context):
            raise KeyError("missing")

        wrapped = wrap_reporting_handler(handler, backend, options, timers)
        with pytest.raises(KeyError):
            wrapped({}, context)

        tags = backend.exceptions[0].tags
        assert tags["function_name"] == "webhook-handler"
        assert tags["request_id"] == "req-1"
        assert tags["function_version"] == "$LATEST"
        assert tags["handler"].endswith("handler")

    def test_context_passed_by_keyword(self, backend, options, timers) -> None:
        context = LocalInvocationContext(aws_request_id="req-kw")

        def handler(event, context):
            raise RuntimeError("boom")

        wrapped = wrap_reporting_handler(handler, backend, options, timers)
        with pytest.raises(RuntimeError):
            wrapped(event={}, context=context)

        assert backend.exceptions[0].tags["request_id"] == "req-kw"

    def test_flush_runs_after_success_and_failure(self, backend, options, timers) -> None:
        calls: list[str] = []

        def handler(event, context):
            calls.append("handler")
            if event.get("fail"):
                raise ValueError("nope")
            return "ok"

        wrapped = wrap_reporting_handler(handler, backend, options, timers)
        wrapped({}, None)
        with pytest.raises(ValueError):
            wrapped({"fail": True}, None)

        assert calls == ["handler", "handler"]
        assert backend.flush_timeouts == [2.0, 2.0]
        assert all(timer.cancelled for timer in timers.timers)
        assert all(scope.closed for scope in backend.scopes)

    def test_base_exceptions_are_not_reported(self, backend, options, timers) -> None:
        def handler(event, context):
            raise KeyboardInterrupt

        wrapped = wrap_reporting_handler(handler, backend, options, timers)
        with pytest.raises(KeyboardInterrupt):
            wrapped({}, None)

        assert backend.exceptions == []
        assert backend.flush_timeouts == [2.0]

    @pytest.mark.parametrize("operation", ["open_scope", "capture", "flush"])
    def test_telemetry_failures_do_not_alter_result(
        self, backend, options, timers, operation
    ) -> None:
        backend.set_should_fail(operation)
        wrapped = wrap_reporting_handler(lambda e, c: "ok", backend, options, timers)

        assert wrapped({}, None) == "ok"

    @pytest.mark.parametrize("operation", ["open_scope", "capture", "flush"])
    def test_telemetry_failures_do_not_alter_exception(
        self, backend, options, timers, operation
    ) -> None:
        error = LookupError("business failure")
        backend.set_should_fail(operation)

        def handler(event, context):
            raise error

        wrapped = wrap_reporting_handler(handler, backend, options, timers)
        with pytest.raises(LookupError) as exc_info:
            wrapped({}, None)

        assert exc_info.value is error

    def test_timer_failure_does_not_alter_result(self, backend, options) -> None:
        def broken_timer_factory(interval, function):
            raise RuntimeError("no threads")

        wrapped = wrap_reporting_handler(lambda e, c: "ok", backend, options, broken_timer_factory)
        assert wrapped({}, None) == "ok"


class TestTimeoutWarning:
    """Test the deadline-based diagnostic warning."""

    def test_warning_reported_while_handler_runs(self, backend, options, timers) -> None:
        def handler(event, context):
            timers.last.fire()
            return "done"

        wrapped = wrap_reporting_handler(handler, backend, options, timers)

        assert wrapped({}, None) == "done"
        warning = backend.messages[0]
        assert warning.level is Level.WARNING
        assert "Possible timeout" in warning.payload
        assert warning.extra["timeout_warning_limit_ms"] == 500
        assert "elapsed_ms" in warning.extra

    def test_warning_not_reported_after_completion(self, backend, options, timers) -> None:
        wrapped = wrap_reporting_handler(lambda e, c: "done", backend, options, timers)
        wrapped({}, None)

        timers.last.fire()

        assert backend.messages == []

    def test_fixed_threshold_without_context(self, timers) -> None:
        warning = TimeoutWarning(lambda elapsed: None, 500, context=None, timer_factory=timers)
        warning.arm()

        assert timers.last.interval == pytest.approx(0.5)
        assert timers.last.started

    def test_deadline_relative_with_lambda_context(self, timers) -> None:
        context = LocalInvocationContext(timeout_ms=3000)
        warning = TimeoutWarning(lambda elapsed: None, 500, context=context, timer_factory=timers)
        warning.arm()

        assert 2.0 < timers.last.interval <= 2.5

    def test_short_deadline_falls_back_to_threshold(self, timers) -> None:
        context = LocalInvocationContext(timeout_ms=200)
        warning = TimeoutWarning(lambda elapsed: None, 500, context=context, timer_factory=timers)

        assert warning.delay_seconds() == pytest.approx(0.5)

    def test_arm_is_idempotent(self, timers) -> None:
        warning = TimeoutWarning(lambda elapsed: None, 500, timer_factory=timers)
        warning.arm()
        warning.arm()

        assert len(timers.timers) == 1

    def test_callback_failure_is_logged(self, timers, caplog) -> None:
        def on_timeout(elapsed):
            raise RuntimeError("backend down")

        warning = TimeoutWarning(on_timeout, 500, timer_factory=timers)
        warning.arm()
        timers.last.fire()

        assert warning.fired is True
        assert "backend down" in caplog.text

    def test_real_timer_fires(self) -> None:
        fired = threading.Event()
        warning = TimeoutWarning(lambda elapsed: fired.set(), 10)
        warning.arm()
        try:
            assert fired.wait(timeout=2.0)
        finally:
            warning.cancel()


class TestAsyncWrapper:
    """Test wrapping of coroutine handlers."""

    def test_wrapper_is_coroutine_function(self, backend, options, timers) -> None:
        async def handler(event, context):
            return "ok"

        wrapped = wrap_reporting_handler(handler, backend, options, timers)
        assert inspect.iscoroutinefunction(wrapped)

    @pytest.mark.asyncio
    async def test_async_result_and_flush(self, backend, options, timers) -> None:
        async def handler(event, context):
            await asyncio.sleep(0)
            return {"statusCode": 200}

        wrapped = wrap_reporting_handler(handler, backend, options, timers)

        assert await wrapped({}, None) == {"statusCode": 200}
        assert backend.flush_timeouts == [2.0]

    @pytest.mark.asyncio
    async def test_async_error_reported_and_reraised(self, backend, options, timers) -> None:
        error = ConnectionError("upstream down")

        async def handler(event, context):
            raise error

        wrapped = wrap_reporting_handler(handler, backend, options, timers)

        with pytest.raises(ConnectionError) as exc_info:
            await wrapped({}, None)

        assert exc_info.value is error
        assert backend.exceptions[0].payload is error
        assert backend.flush_timeouts == [2.0]
