from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr for the run report if desired.
    - dry_run logs but does not execute.
    - A missing executable is reported as returncode 127, like a shell would.
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
        )
    except FileNotFoundError as e:
        if check:
            raise RuntimeError(f"Command not found: {argv_list[0]}") from e
        return CmdResult(argv=argv_list, returncode=127, stdout="", stderr=str(e))

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise RuntimeError(f"Command failed ({p.returncode}): {_fmt_argv(argv_list)}\n{p.stderr}")

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def run_shell(script: str, *, check: bool = True, env: Mapping[str, str] | None = None, dry_run: bool = False) -> CmdResult:
    """Run a bash snippet (pipelines, sourced shell functions such as nvm)."""

    return run_cmd(["bash", "-c", script], check=check, env=env, dry_run=dry_run)


def command_exists(name: str) -> bool:
    return which(name) is not None


def which(name: str) -> str | None:
    return shutil.which(name, path=os.environ.get("PATH"))


def tool_version(name: str, *, flag: str = "--version", default: str = "unknown") -> str:
    """Best-effort `<name> --version`, first output line only."""

    r = run_cmd([name, flag], check=False)
    out = (r.stdout or "").strip()
    if r.returncode != 0 or not out:
        return default
    return out.splitlines()[0].strip()
