"""Tests for the sync operation wrapper and its completion listeners."""

from __future__ import annotations

import pytest

from agendasync.bookkeeping import SyncBookkeeper
from agendasync.models import (
    AUTOMATIC_SYNC,
    INTERACTIVE_SYNC,
    DeletionPolicy,
    SyncCompletion,
    SyncInProgressError,
    SyncTrigger,
)
from agendasync.sync import SyncOperation


def test_policies_are_distinguishable() -> None:
    assert AUTOMATIC_SYNC.deletion_policy is DeletionPolicy.SILENT
    assert AUTOMATIC_SYNC.quiet is True
    assert INTERACTIVE_SYNC.is_default is True
    assert AUTOMATIC_SYNC != INTERACTIVE_SYNC


def test_run_notifies_listeners_once(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)
    completions: list[SyncCompletion] = []
    operation.subscribe(completions.append)
    clock.current = 42

    result = operation.run(AUTOMATIC_SYNC, trigger=SyncTrigger.DEBOUNCE)

    assert result == "ok"
    assert len(completions) == 1
    completion = completions[0]
    assert completion.trigger is SyncTrigger.DEBOUNCE
    assert completion.options == AUTOMATIC_SYNC
    assert completion.finished_at == 42
    assert completion.result == "ok"
    assert completion.succeeded is True


def test_direct_call_defaults_to_interactive(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)
    completions: list[SyncCompletion] = []
    operation.subscribe(completions.append)

    operation()

    assert routine.calls[0][1] == INTERACTIVE_SYNC
    assert completions[0].trigger is SyncTrigger.DIRECT


def test_failed_run_still_notifies_and_reraises(clock, routine) -> None:
    routine.error = RuntimeError("calendar unreachable")
    operation = SyncOperation(routine, clock=clock)
    completions: list[SyncCompletion] = []
    operation.subscribe(completions.append)

    with pytest.raises(RuntimeError, match="calendar unreachable"):
        operation.run()

    assert len(completions) == 1
    assert completions[0].succeeded is False
    assert isinstance(completions[0].error, RuntimeError)
    assert operation.running is False


def test_unsubscribe_stops_notifications(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)
    completions: list[SyncCompletion] = []
    unsubscribe = operation.subscribe(completions.append)

    unsubscribe()
    unsubscribe()
    operation.run()

    assert completions == []


def test_subscribing_twice_registers_once(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)
    completions: list[SyncCompletion] = []
    operation.subscribe(completions.append)
    operation.subscribe(completions.append)

    operation.run()

    assert len(completions) == 1


def test_reentrant_run_is_rejected(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)
    errors: list[Exception] = []

    def _nested() -> None:
        try:
            operation.run()
        except SyncInProgressError as exc:
            errors.append(exc)

    routine.before_return = _nested
    operation.run()

    assert len(errors) == 1
    assert len(routine.calls) == 1


def test_run_rejects_async_routine(clock) -> None:
    async def _routine(options):  # type: ignore[no-untyped-def]
        return "async"

    operation = SyncOperation(_routine, clock=clock)
    completions: list[SyncCompletion] = []
    operation.subscribe(completions.append)

    assert operation.is_async is True
    with pytest.raises(TypeError):
        operation.run()
    assert completions[0].succeeded is False


@pytest.mark.anyio
async def test_arun_awaits_async_routine(clock) -> None:
    seen: list[object] = []

    async def _routine(options):  # type: ignore[no-untyped-def]
        seen.append(options)
        return "async"

    operation = SyncOperation(_routine, clock=clock)
    completions: list[SyncCompletion] = []
    operation.subscribe(completions.append)

    result = await operation.arun(AUTOMATIC_SYNC, trigger=SyncTrigger.DEBOUNCE)

    assert result == "async"
    assert seen == [AUTOMATIC_SYNC]
    assert completions[0].result == "async"


@pytest.mark.anyio
async def test_arun_accepts_sync_routine(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)

    assert await operation.arun() == "ok"
    assert len(routine.calls) == 1


def test_failing_listener_does_not_mask_sync_error(clock, routine, caplog) -> None:
    routine.error = RuntimeError("calendar unreachable")
    operation = SyncOperation(routine, clock=clock)
    completions: list[SyncCompletion] = []

    def _broken(completion: SyncCompletion) -> None:
        raise ValueError("listener bug")

    operation.subscribe(_broken)
    operation.subscribe(completions.append)

    with caplog.at_level("ERROR", logger="agendasync.sync"):
        with pytest.raises(RuntimeError, match="calendar unreachable"):
            operation.run()

    assert len(completions) == 1
    assert operation.running is False
    assert "Sync completion listener failed" in caplog.text


def test_failing_listener_keeps_successful_result(clock, routine) -> None:
    operation = SyncOperation(routine, clock=clock)
    bookkeeper = SyncBookkeeper(clock=clock)

    def _broken(completion: SyncCompletion) -> None:
        raise ValueError("listener bug")

    operation.subscribe(_broken)
    bookkeeper.attach(operation)
    clock.current = 9

    assert operation.run() == "ok"
    assert bookkeeper.last_sync_at == 9
