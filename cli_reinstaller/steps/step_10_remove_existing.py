from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import command_exists, tool_version
from ..lib.removal import sweep
from ..pipeline import StepResult
from ..state_store import add_warning

logger = logging.getLogger(__name__)


class RemoveExistingStep:
    """Best-effort removal through every channel; never fails the run."""

    step_id = "10_remove_existing"

    def __init__(self, channels=None) -> None:
        self.channels = channels

    def run(self, ctx, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.cfg
        logger.info("Removing all existing %s installations", cfg.target_name)

        removal = state.setdefault("removal", {})
        if command_exists(cfg.command):
            version = tool_version(cfg.command)
            logger.warning("Existing %s installation detected", cfg.target_name)
            logger.info("Current version: %s", version)
            removal["previous_version"] = version

        report = sweep(ctx, self.channels)
        removal["channels"] = {r.channel: r.as_dict() for r in report.reports}
        removal["still_resolves"] = report.still_resolves
        for failure in report.failures:
            add_warning(state, self.step_id, failure)

        if report.still_resolves:
            add_warning(
                state,
                self.step_id,
                f"{cfg.target_name} command still exists at: {report.still_resolves}; "
                "manual intervention may be required",
            )
            logger.info("Continuing with installation anyway...")
            return StepResult.success(self.step_id, "tool still resolvable after cleanup")

        if report.found_any:
            msg = f"Successfully removed all existing {cfg.target_name} installations"
        else:
            msg = f"No existing {cfg.target_name} installation found"
        logger.info(msg)
        return StepResult.success(self.step_id, msg)
