from __future__ import annotations

import logging
from pathlib import Path

from .command import run_cmd
from .textpatch import strip_lines

logger = logging.getLogger(__name__)

NPMRC_CONFLICT_PATTERN = r"^(prefix|globalconfig) *= *"


def npm_global_has(package: str) -> bool:
    return run_cmd(["npm", "list", "-g", package], check=False).ok


def npm_uninstall_global(package: str, *, dry_run: bool = False) -> bool:
    return run_cmd(["npm", "uninstall", "-g", package], check=False, dry_run=dry_run).ok


def npm_install_global(spec: str, *, dry_run: bool = False) -> None:
    run_cmd(["npm", "i", "-g", spec], dry_run=dry_run)


def npm_config_get(key: str) -> str | None:
    r = run_cmd(["npm", "config", "get", key], check=False)
    value = (r.stdout or "").strip()
    if not r.ok or not value or value == "undefined":
        return None
    return value


def npm_config_set(key: str, value: str, *, dry_run: bool = False) -> None:
    run_cmd(["npm", "config", "set", key, value], dry_run=dry_run)


def clean_npmrc_conflict(npmrc: Path, *, dry_run: bool = False) -> int:
    """Strip prefix/globalconfig lines, which fight with nvm-managed node."""

    if npmrc.is_file():
        logger.info("Cleaning npmrc conflicts in %s", npmrc)
    return strip_lines(npmrc, NPMRC_CONFLICT_PATTERN, dry_run=dry_run)


def normalize_registry(npmrc: Path, registry: str, *, dry_run: bool = False) -> None:
    clean_npmrc_conflict(npmrc, dry_run=dry_run)
    npm_config_set("registry", registry, dry_run=dry_run)
    logger.info("npm registry set to %s", registry)
