from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import tool_version, which
from ..lib.npm import npm_config_get, npm_install_global
from ..pipeline import StepResult
from ..state_store import add_warning

logger = logging.getLogger(__name__)


class InstallTargetStep:
    step_id = "40_install_target"

    def run(self, ctx, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.cfg
        target = state.setdefault("target", {})
        spec = f"{cfg.package}@latest"
        logger.info("Installing %s from %s...", cfg.target_name, spec)

        try:
            npm_install_global(spec, dry_run=ctx.dry_run)
        except RuntimeError as e:
            return StepResult.failure(self.step_id, f"Failed to install {cfg.target_name}: {e}")
        target["installed"] = spec
        logger.info("%s installed successfully!", cfg.target_name)

        if ctx.dry_run:
            return StepResult.success(self.step_id, "dry run")

        # Verification problems are advisory only.
        resolved = which(cfg.command)
        target["path"] = resolved
        if resolved:
            version = tool_version(cfg.command, default="version info not available")
            target["version"] = version
            logger.info("%s version: %s", cfg.target_name, version)
            return StepResult.success(self.step_id, f"{cfg.command} at {resolved}")

        prefix = npm_config_get("prefix") or "<npm prefix>"
        add_warning(
            state,
            self.step_id,
            f"{cfg.target_name} installed but command not found. You may need to reload your "
            "shell or add npm global bin to PATH.",
        )
        logger.info('Try running: export PATH="$PATH:%s/bin"', prefix)
        return StepResult.success(self.step_id, "installed; not on PATH yet")
