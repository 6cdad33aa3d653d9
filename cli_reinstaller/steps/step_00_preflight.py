from __future__ import annotations

import logging
import platform
from typing import Any, Dict

from ..lib.command import command_exists, run_cmd
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


def _distribution() -> str:
    if not command_exists("lsb_release"):
        return "Unknown"
    r = run_cmd(["lsb_release", "-d"], check=False)
    line = (r.stdout or "").strip()
    if not r.ok or not line:
        return "Unknown"
    # "Description:\tUbuntu 24.04 LTS"
    return line.split("\t", 1)[-1].split(":", 1)[-1].strip()


class PreflightStep:
    step_id = "00_preflight"

    def run(self, ctx, state: Dict[str, Any]) -> StepResult:
        u = platform.uname()
        system = {
            "system": f"{u.system} {u.release}",
            "distribution": _distribution(),
            "shell": ctx.env.shell,
            "debian_family": ctx.env.is_debian_family,
        }
        state["system"] = system
        logger.info("System: %s", system["system"])
        logger.info("Distribution: %s", system["distribution"])
        logger.info("Shell: %s", system["shell"])

        if system["debian_family"]:
            return StepResult.success(self.step_id)

        logger.warning("This installer is optimized for Debian-based systems (Ubuntu, Pop!_OS, etc.)")
        if ctx.assume_yes or ctx.ask("Continue anyway?"):
            return StepResult.success(self.step_id, "continuing on a non-Debian system")
        return StepResult.success(self.step_id, "Installation cancelled", halt=True)
