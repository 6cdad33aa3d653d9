from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence

from .state_store import record_error, record_result

if TYPE_CHECKING:
    from .context import RunCtx

logger = logging.getLogger(__name__)

UNHANDLED_MESSAGE = "An error occurred. Installation aborted."


@dataclass(frozen=True)
class StepResult:
    """Outcome of one stage. `halt` ends the run early without failing it."""

    step_id: str
    ok: bool
    message: str = ""
    halt: bool = False

    @classmethod
    def success(cls, step_id: str, message: str = "", *, halt: bool = False) -> "StepResult":
        return cls(step_id=step_id, ok=True, message=message, halt=halt)

    @classmethod
    def failure(cls, step_id: str, message: str) -> "StepResult":
        return cls(step_id=step_id, ok=False, message=message)

    def as_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "message": self.message, "halt": self.halt}


class Step(Protocol):
    """A single idempotent stage."""

    step_id: str

    def run(self, ctx: "RunCtx", state: Dict[str, Any]) -> StepResult:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    results: List[StepResult] = field(default_factory=list)

    @property
    def failed(self) -> Optional[StepResult]:
        return next((r for r in self.results if not r.ok), None)

    @property
    def ok(self) -> bool:
        return self.failed is None

    @property
    def halted(self) -> bool:
        return any(r.halt for r in self.results)


def run_pipeline(
    *,
    ctx: "RunCtx",
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run stages in order until one fails or halts.

    Exceptions escaping a stage are turned into a failed result here, so
    callers only ever see structured outcomes.
    """

    known = {step.step_id for step in steps}
    for requested in (start_at, stop_after):
        if requested is not None and requested not in known:
            raise ValueError(f"Unknown step id: {requested}")

    ran: List[str] = []
    results: List[StepResult] = []

    started = start_at is None

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        state.setdefault("execution", {})["current_step"] = step.step_id
        logger.info("Running step %s", step.step_id)

        try:
            result = step.run(ctx, state)
        except Exception as e:
            logger.exception("Step %s raised", step.step_id)
            result = StepResult.failure(step.step_id, f"{UNHANDLED_MESSAGE} ({e})")

        ran.append(step.step_id)
        results.append(result)
        record_result(state, step.step_id, result.as_dict())

        if not result.ok:
            logger.error("Step %s failed: %s", step.step_id, result.message)
            record_error(state, step.step_id, result.message)
            break
        if result.halt:
            logger.info("Step %s ended the run: %s", step.step_id, result.message)
            break

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, results=results)
