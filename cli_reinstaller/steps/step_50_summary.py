from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import which
from ..lib.npm import npm_config_get
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class SummaryStep:
    step_id = "50_summary"

    def run(self, ctx, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.cfg
        summary = {
            "path": None if ctx.dry_run else which(cfg.command),
            "registry": None if ctx.dry_run else npm_config_get("registry"),
            "reactivate": ctx.env.reactivate_hint,
        }
        state["summary"] = summary

        logger.info("Reinstallation completed successfully!")
        logger.info("To start using %s, run:", cfg.target_name)
        logger.info("  %s", summary["reactivate"])
        logger.info("  %s", cfg.command)
        if summary["path"]:
            logger.info("%s resolved at %s", cfg.command, summary["path"])
        logger.info("npm registry: %s", summary["registry"] or cfg.registry)
        return StepResult.success(self.step_id)
