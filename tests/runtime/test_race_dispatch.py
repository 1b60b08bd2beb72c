from __future__ import annotations

import asyncio

from txrelay.runtime import race_first_success
from txrelay.types import SubmissionOutcome


def run_async(coro):
    return asyncio.run(coro)


def _attempt(name: str, *, delay: float = 0.0, success: bool = True, raises: Exception | None = None):
    async def factory() -> SubmissionOutcome:
        if delay:
            await asyncio.sleep(delay)
        if raises is not None:
            raise raises
        if success:
            return SubmissionOutcome(channel_name=name, success=True, identifier=f"{name}-sig")
        return SubmissionOutcome.failed(name, f"{name} rejected")

    return factory


def test_empty_race_has_no_winner():
    result = run_async(race_first_success({}))

    assert result.winner is None
    assert result.failures == {}


def test_first_success_in_completion_order_wins():
    async def scenario():
        return await race_first_success(
            {
                "slow": _attempt("slow", delay=0.2),
                "fast": _attempt("fast", delay=0.02),
                "broken": _attempt("broken", success=False),
            }
        )

    result = run_async(scenario())

    assert result.winner is not None
    assert result.winner.channel_name == "fast"
    assert result.failures == {"broken": "broken rejected"}
    assert result.detached == ("slow",)


def test_attempts_settling_together_are_ordered_by_name():
    result = run_async(
        race_first_success({"b": _attempt("b"), "a": _attempt("a")})
    )

    assert result.winner is not None
    assert result.winner.channel_name == "a"


def test_raising_attempt_is_folded_into_failure_without_stopping_others():
    async def scenario():
        return await race_first_success(
            {
                "raiser": _attempt("raiser", raises=RuntimeError("socket closed")),
                "ok": _attempt("ok", delay=0.02),
            }
        )

    result = run_async(scenario())

    assert result.winner is not None
    assert result.winner.channel_name == "ok"
    assert result.failures == {"raiser": "socket closed"}


def test_all_failures_are_collected_when_nobody_succeeds():
    result = run_async(
        race_first_success(
            {
                "a": _attempt("a", success=False),
                "b": _attempt("b", delay=0.01, success=False),
            }
        )
    )

    assert result.winner is None
    assert result.failures == {"a": "a rejected", "b": "b rejected"}
    assert result.detached == ()


def test_losers_are_detached_not_cancelled():
    detached: dict[str, asyncio.Task] = {}

    async def scenario():
        result = await race_first_success(
            {
                "winner": _attempt("winner", delay=0.01),
                "loser": _attempt("loser", delay=0.05),
            },
            detach=lambda name, task: detached.setdefault(name, task),
        )
        late = await detached["loser"]
        return result, late

    result, late = run_async(scenario())

    assert result.winner is not None
    assert result.winner.channel_name == "winner"
    assert late.success is True
    assert late.channel_name == "loser"
    assert result.winner.identifier == "winner-sig"
