from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import command_exists, tool_version
from ..lib.npm import normalize_registry
from ..lib.nvm import install_node, install_nvm, node_major_version
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class EnsureRuntimeStep:
    """Node.js >= min major on PATH, else nvm + pinned node. Failure is fatal."""

    step_id = "30_ensure_runtime"

    def run(self, ctx, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.cfg
        runtime = state.setdefault("runtime", {})

        major = node_major_version()
        runtime["found_major"] = major

        if major is not None and major >= cfg.node_min_major:
            logger.info("Node.js v%s is already installed (>= %s); using it", major, cfg.node_min_major)
            runtime["action"] = "reused"
        else:
            if major is None:
                logger.warning("Node.js not found; installing via nvm")
            else:
                logger.warning("Node.js v%s is installed but version < %s", major, cfg.node_min_major)
            runtime["action"] = "installed"

            try:
                runtime["nvm_installed_now"] = install_nvm(
                    ctx.env,
                    ctx.nvm_dir,
                    url=cfg.nvm_archive_url,
                    version=cfg.nvm_version,
                    connect_timeout=cfg.connect_timeout,
                    max_time=cfg.max_time,
                    dry_run=ctx.dry_run,
                )
            except RuntimeError as e:
                return StepResult.failure(self.step_id, f"Failed to install nvm: {e}")

            try:
                runtime["node_bin_dir"] = install_node(ctx.nvm_dir, cfg.node_version, dry_run=ctx.dry_run)
            except RuntimeError as e:
                return StepResult.failure(self.step_id, f"Failed to install Node.js: {e}")
            runtime["pinned_version"] = cfg.node_version

            if not ctx.dry_run:
                logger.info("Node.js version: %s", tool_version("node", flag="-v"))
                logger.info("npm version: %s", tool_version("npm", flag="-v"))

        if not ctx.dry_run and not command_exists("npm"):
            return StepResult.failure(
                self.step_id,
                f"npm command not found after Node.js installation! Please run: source {ctx.env.shell_profile}",
            )

        normalize_registry(ctx.npmrc, cfg.registry, dry_run=ctx.dry_run)
        runtime["registry"] = cfg.registry
        return StepResult.success(self.step_id, f"node runtime {runtime['action']}")
