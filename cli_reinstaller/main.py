from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import load_config
from .context import RunCtx
from .lib.env import HostEnv
from .lib.prompt import InputFn
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import UNHANDLED_MESSAGE, PipelineResult, run_pipeline
from .state_store import new_state, save_report
from .steps import (
    EnsureRuntimeStep,
    InstallTargetStep,
    OptionalToolsStep,
    PreflightStep,
    RemoveExistingStep,
    SummaryStep,
)

logger = logging.getLogger(__name__)


DEFAULT_REPORT_PATH = str(Path.home() / ".cache" / "cli-reinstaller" / "last-run.json")


def build_steps():
    return [
        PreflightStep(),
        RemoveExistingStep(),
        OptionalToolsStep(),
        EnsureRuntimeStep(),
        InstallTargetStep(),
        SummaryStep(),
    ]


def run(
    *,
    config_path: Optional[str] = None,
    report_path: str = DEFAULT_REPORT_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    dry_run: bool = False,
    assume_yes: bool = False,
    config_dir_policy: str = "ask",
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    verbose: bool = False,
    env: Optional[HostEnv] = None,
    input_fn: Optional[InputFn] = None,
    steps=None,
) -> PipelineResult:
    """Run the reinstall pipeline once and write the run report."""

    actual_log_path = configure_logging(log_path=log_path, level=logging.DEBUG if verbose else logging.INFO)

    state: Dict[str, Any] = new_state()
    state["execution"]["paths"] = {"log_path_requested": log_path, "log_path_actual": actual_log_path}
    state["execution"]["dry_run"] = dry_run

    try:
        ctx = RunCtx(
            cfg=load_config(config_path),
            env=env or HostEnv.from_environ(),
            dry_run=dry_run,
            assume_yes=assume_yes,
            config_dir_policy=config_dir_policy,
            input_fn=input_fn,
        )
        result = run_pipeline(
            ctx=ctx,
            state=state,
            steps=build_steps() if steps is None else steps,
            start_at=start_at,
            stop_after=stop_after,
        )
        state["execution"]["ran_steps"] = result.ran_steps
        state["execution"]["outcome"] = "failed" if not result.ok else ("cancelled" if result.halted else "ok")
        return result
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        state["execution"]["outcome"] = "interrupted"
        raise
    except Exception as e:
        logger.exception("Reinstaller failed")
        state["execution"]["outcome"] = "failed"
        state["execution"]["errors"].append({"step": state["execution"].get("current_step"), "error": str(e)})
        raise
    finally:
        save_report(report_path, state)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cli-reinstall",
        description="Remove every existing copy of an npm-distributed CLI and install the latest one.",
    )
    p.add_argument("--config", default=None, help="YAML config (defaults target iFlow CLI)")
    p.add_argument("--report", default=DEFAULT_REPORT_PATH, help="Path to run report (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log file")
    p.add_argument("--dry-run", action="store_true", help="Log commands without running them")
    p.add_argument("-y", "--yes", action="store_true", help="Continue on non-Debian systems without asking")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--purge-config", action="store_true", help="Delete config/cache dirs without asking")
    group.add_argument("--keep-config", action="store_true", help="Keep config/cache dirs without asking")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 30_ensure_runtime)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id (e.g. 10_remove_existing)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log command output too")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    policy = "purge" if args.purge_config else ("keep" if args.keep_config else "ask")
    try:
        result = run(
            config_path=args.config,
            report_path=args.report,
            log_path=args.log,
            dry_run=bool(args.dry_run),
            assume_yes=bool(args.yes),
            config_dir_policy=policy,
            start_at=args.start_at,
            stop_after=args.stop_after,
            verbose=bool(args.verbose),
        )
    except KeyboardInterrupt:
        return 130
    except Exception:
        logger.error(UNHANDLED_MESSAGE)
        return 1

    if not result.ok:
        logger.error("%s", result.failed.message)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
