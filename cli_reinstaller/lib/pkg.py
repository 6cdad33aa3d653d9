from __future__ import annotations

import logging
import re
from typing import Sequence

from .command import command_exists, run_cmd, run_shell

logger = logging.getLogger(__name__)


def dpkg_lists(name: str) -> bool:
    """Return True if `dpkg -l` mentions name (case-insensitive), like `dpkg -l | grep -i`."""

    if not command_exists("dpkg"):
        return False
    r = run_cmd(["dpkg", "-l"], check=False)
    if not r.ok:
        return False
    rx = re.compile(re.escape(name), re.IGNORECASE)
    return any(rx.search(line) for line in r.stdout.splitlines())


def apt_remove(packages: Sequence[str], *, dry_run: bool = False) -> bool:
    if not packages:
        return True
    return run_cmd(["sudo", "apt-get", "remove", "-y", *packages], check=False, dry_run=dry_run).ok


def apt_autoremove(*, dry_run: bool = False) -> bool:
    return run_cmd(["sudo", "apt-get", "autoremove", "-y"], check=False, dry_run=dry_run).ok


def dpkg_remove(package: str, *, dry_run: bool = False) -> bool:
    return run_cmd(["sudo", "dpkg", "--remove", package], check=False, dry_run=dry_run).ok


def dpkg_purge(packages: Sequence[str], *, dry_run: bool = False) -> bool:
    if not packages:
        return True
    return run_cmd(["sudo", "dpkg", "--purge", *packages], check=False, dry_run=dry_run).ok


def ensure_xz(*, dry_run: bool = False) -> bool:
    """Node tarballs are .tar.xz; nvm needs xz to unpack them."""

    if command_exists("xz"):
        return True
    logger.warning("xz not found, installing xz-utils...")
    r = run_shell("sudo apt-get update && sudo apt-get install -y xz-utils", check=False, dry_run=dry_run)
    if not r.ok:
        logger.warning("Failed to install xz-utils, continuing anyway...")
    return r.ok
