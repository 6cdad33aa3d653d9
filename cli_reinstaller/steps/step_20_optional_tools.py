from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import command_exists, run_shell, tool_version
from ..lib.env import prepend_path
from ..pipeline import StepResult
from ..state_store import add_warning

logger = logging.getLogger(__name__)


class OptionalToolsStep:
    """Install uv. Nothing here may fail the run."""

    step_id = "20_optional_tools"

    def run(self, ctx, state: Dict[str, Any]) -> StepResult:
        tools = state.setdefault("optional_tools", {})
        if not ctx.cfg.uv_enabled:
            tools["uv"] = "disabled"
            return StepResult.success(self.step_id, "uv disabled by configuration")

        if command_exists("uv"):
            version = tool_version("uv", default="version info not available")
            logger.info("uv is already installed (%s)", version)
            tools["uv"] = version
            return StepResult.success(self.step_id, "uv already installed")

        logger.info("Installing uv...")
        r = run_shell(f"curl -LsSf {ctx.cfg.uv_install_url} | sh", check=False, dry_run=ctx.dry_run)
        if not r.ok:
            tools["uv"] = "failed"
            add_warning(state, self.step_id, "UV installation failed, but continuing with the rest of the installation...")
            return StepResult.success(self.step_id, "uv install failed (ignored)")

        prepend_path(str(ctx.env.home / ".local" / "bin"), str(ctx.env.home / ".cargo" / "bin"))
        tools["uv"] = "installed"
        logger.info("uv installed successfully")
        return StepResult.success(self.step_id, "uv installed")
