"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

First-success race over concurrent channel attempts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field

from ..types import SubmissionOutcome

logger = logging.getLogger("txrelay.runtime.race")

AttemptFactory = Callable[[], Awaitable[SubmissionOutcome]]
DetachHook = Callable[[str, "asyncio.Task[SubmissionOutcome]"], None]


@dataclass(frozen=True, slots=True)
class RaceResult:
    """
    Settled view of one race.

    ``winner`` is the first successful outcome in completion order. Attempts
    still running when the race settled are listed in ``detached``; their
    outcomes are never folded into this result.
    """

    winner: SubmissionOutcome | None
    failures: dict[str, str] = field(default_factory=dict)
    detached: tuple[str, ...] = ()


async def race_first_success(
    attempts: Mapping[str, AttemptFactory],
    *,
    detach: DetachHook | None = None,
) -> RaceResult:
    """
    Run every attempt concurrently and return as soon as one succeeds.

    Losing attempts are not cancelled; they are handed to ``detach`` (or left
    to finish on their own) and their outcomes are discarded. A fault raised by
    one attempt is folded into a failed outcome and never stops the others.
    """
    if not attempts:
        return RaceResult(winner=None)

    tasks: dict[asyncio.Task[SubmissionOutcome], str] = {
        asyncio.create_task(factory(), name=f"txrelay.race.{name}"): name
        for name, factory in attempts.items()
    }
    pending: set[asyncio.Task[SubmissionOutcome]] = set(tasks)
    failures: dict[str, str] = {}
    winner: SubmissionOutcome | None = None

    try:
        while pending and winner is None:
            done, pending = await asyncio.wait(
                pending, return_when=asyncio.FIRST_COMPLETED
            )
            # Attempts settling in the same loop tick are ordered by name.
            for task in sorted(done, key=lambda row: tasks[row]):
                name = tasks[task]
                outcome = _settle(name, task)
                if outcome.success and winner is None:
                    winner = outcome
                elif outcome.success:
                    logger.debug("Discarding simultaneous success from %s", name)
                else:
                    failures[name] = outcome.error or "unknown error"
    finally:
        for task in pending:
            if detach is not None:
                detach(tasks[task], task)
            else:
                task.add_done_callback(_consume)

    return RaceResult(
        winner=winner,
        failures=failures,
        detached=tuple(sorted(tasks[task] for task in pending)),
    )


def _settle(name: str, task: asyncio.Task[SubmissionOutcome]) -> SubmissionOutcome:
    try:
        return task.result()
    except asyncio.CancelledError:
        return SubmissionOutcome.failed(name, "Attempt was cancelled")
    except Exception as exc:  # noqa: BLE001
        return SubmissionOutcome.failed(name, str(exc) or type(exc).__name__)


def _consume(task: asyncio.Task[SubmissionOutcome]) -> None:
    if not task.cancelled():
        task.exception()
