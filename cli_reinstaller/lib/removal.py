"""Removal channels: every known way the target tool can be present on a host.

Each channel probes its own location and removes what it finds. Failures are
collected into the channel's report, never raised, so the sweep always runs
every channel.
"""

from __future__ import annotations

import glob
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence

from .command import command_exists, run_cmd, which
from .npm import npm_config_get, npm_global_has, npm_uninstall_global
from .pkg import apt_autoremove, apt_remove, dpkg_lists, dpkg_purge, dpkg_remove

if TYPE_CHECKING:
    from ..context import RunCtx

logger = logging.getLogger(__name__)


@dataclass
class ChannelReport:
    channel: str
    found: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def fail(self, message: str) -> None:
        logger.warning("[%s] %s", self.channel, message)
        self.failures.append(message)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "found": list(self.found),
            "removed": list(self.removed),
            "kept": list(self.kept),
            "failures": list(self.failures),
        }


class RemovalChannel(Protocol):
    name: str

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        ...


def remove_path(path: str, *, dry_run: bool = False) -> bool:
    """rm -rf for one path. Returns True if it is gone afterwards."""

    if dry_run:
        logger.info("Would remove %s", path)
        return True
    p = Path(path)
    try:
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        elif os.path.lexists(p):
            p.unlink()
    except OSError as e:
        logger.debug("remove %s: %s", path, e)
    return not os.path.lexists(p)


def _remove_into(report: ChannelReport, path: str, *, dry_run: bool) -> None:
    report.found.append(path)
    logger.info("Removing %s", path)
    if remove_path(path, dry_run=dry_run):
        report.removed.append(path)
        logger.info("Removed %s", path)
    else:
        report.fail(f"Could not remove {path}")


def expand_candidates(patterns: Sequence[str], ctx: "RunCtx") -> List[str]:
    """Expand ~ and glob wildcards; keep only paths that exist."""

    out: List[str] = []
    for pattern in patterns:
        expanded = ctx.env.expand(pattern)
        if glob.has_magic(expanded):
            matches = sorted(glob.glob(expanded))
        else:
            matches = [expanded] if os.path.lexists(expanded) else []
        for m in matches:
            if m not in out:
                out.append(m)
    return out


class NpmGlobalChannel:
    name = "npm-global"

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        report = ChannelReport(self.name)
        if not command_exists("npm"):
            logger.info("npm not on PATH; skipping npm global check")
            return report

        logger.info("Checking npm global installations...")
        for package in ctx.cfg.npm_aliases:
            if not npm_global_has(package):
                continue
            report.found.append(package)
            logger.info("Uninstalling %s via npm...", package)
            if npm_uninstall_global(package, dry_run=ctx.dry_run):
                report.removed.append(package)
                logger.info("Removed %s", package)
            else:
                report.fail(f"Could not remove {package} via npm")
        return report


class NpmPrefixChannel:
    name = "npm-prefix"

    def prefix(self, ctx: "RunCtx") -> str:
        value = npm_config_get("prefix") if command_exists("npm") else None
        return value or ctx.env.expand("~/.npm-global")

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        report = ChannelReport(self.name)
        logger.info("Removing %s binaries from npm directories...", ctx.cfg.command)
        prefix = self.prefix(ctx)
        candidates = [os.path.join(prefix, "bin", ctx.cfg.command)]
        candidates += [os.path.join(prefix, "lib", "node_modules", a) for a in ctx.cfg.npm_aliases]
        for path in candidates:
            if os.path.lexists(path):
                _remove_into(report, path, dry_run=ctx.dry_run)
        return report


class LooseBinaryChannel:
    name = "loose-binary"

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        report = ChannelReport(self.name)
        logger.info("Checking common installation locations...")
        for path in expand_candidates(ctx.cfg.binary_paths, ctx):
            _remove_into(report, path, dry_run=ctx.dry_run)
        return report


class OsPackageChannel:
    name = "os-package"

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        report = ChannelReport(self.name)
        logger.info("Checking for system package installations (apt/dpkg)...")
        if not dpkg_lists(ctx.cfg.command):
            return report

        packages = ctx.cfg.os_packages
        report.found.extend(packages)
        logger.warning("Found %s package installed via dpkg", ctx.cfg.command)

        if command_exists("apt-get"):
            logger.info("Attempting to remove via apt-get...")
            if apt_remove(packages, dry_run=ctx.dry_run):
                logger.info("Removed via apt-get")
            else:
                logger.warning("Could not remove via apt-get")
            apt_autoremove(dry_run=ctx.dry_run)

        logger.info("Attempting to remove via dpkg...")
        for package in packages:
            if dpkg_remove(package, dry_run=ctx.dry_run):
                logger.info("Removed %s via dpkg", package)
        dpkg_purge(packages, dry_run=ctx.dry_run)

        if not ctx.dry_run and dpkg_lists(ctx.cfg.command):
            report.fail(f"dpkg still lists {ctx.cfg.command}")
        else:
            report.removed.extend(packages)
        return report


class ConfigDirChannel:
    """Configuration survives unless the operator says otherwise."""

    name = "config-dirs"

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        report = ChannelReport(self.name)
        logger.info("Checking for configuration and cache directories...")
        for pattern in ctx.cfg.config_dirs:
            path = ctx.env.expand(pattern)
            if not os.path.isdir(path):
                continue
            logger.warning("Found configuration directory: %s", path)
            if ctx.config_dir_policy == "purge":
                delete = True
            elif ctx.config_dir_policy == "keep":
                delete = False
            else:
                delete = ctx.ask(f"Do you want to remove configuration directory {path}?")
            if delete:
                _remove_into(report, path, dry_run=ctx.dry_run)
            else:
                logger.info("Keeping %s", path)
                report.found.append(path)
                report.kept.append(path)
        return report


class PathResolutionChannel:
    """Last resort: whatever PATH still resolves, delete it (with sudo if needed)."""

    name = "path-resolution"

    def remove(self, ctx: "RunCtx") -> ChannelReport:
        report = ChannelReport(self.name)
        resolved = which(ctx.cfg.command)
        if not resolved:
            return report

        logger.warning("%s command still exists after cleanup", ctx.cfg.target_name)
        report.found.append(resolved)
        if not os.path.isfile(resolved):
            report.fail(f"{resolved} is not a regular file")
            return report

        logger.info("Found %s executable at: %s", ctx.cfg.command, resolved)
        if remove_path(resolved, dry_run=ctx.dry_run):
            report.removed.append(resolved)
            logger.info("Removed %s", resolved)
            return report

        logger.info("Could not remove %s; attempting with sudo...", resolved)
        run_cmd(["sudo", "rm", "-f", resolved], check=False, dry_run=ctx.dry_run)
        if os.path.lexists(resolved):
            report.fail(f"Failed to remove {resolved}")
        else:
            report.removed.append(resolved)
            logger.info("Removed %s with sudo", resolved)
        return report


def default_channels() -> List[RemovalChannel]:
    return [
        NpmGlobalChannel(),
        NpmPrefixChannel(),
        LooseBinaryChannel(),
        OsPackageChannel(),
        ConfigDirChannel(),
        PathResolutionChannel(),
    ]


@dataclass
class SweepReport:
    reports: List[ChannelReport]
    still_resolves: Optional[str] = None

    @property
    def found_any(self) -> bool:
        return any(r.found for r in self.reports if r.channel != ConfigDirChannel.name)

    @property
    def failures(self) -> List[str]:
        return [f"{r.channel}: {f}" for r in self.reports for f in r.failures]


def sweep(ctx: "RunCtx", channels: Optional[Sequence[RemovalChannel]] = None) -> SweepReport:
    """Run every channel regardless of earlier failures, then re-check PATH."""

    reports: List[ChannelReport] = []
    for channel in channels if channels is not None else default_channels():
        try:
            reports.append(channel.remove(ctx))
        except Exception as e:
            logger.warning("[%s] removal raised: %s", channel.name, e, exc_info=True)
            reports.append(ChannelReport(channel.name, failures=[str(e)]))

    still = None if ctx.dry_run else which(ctx.cfg.command)
    return SweepReport(reports=reports, still_resolves=still)
