from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional

from .command import command_exists, run_cmd, run_shell
from .env import HostEnv, prepend_path
from .pkg import ensure_xz
from .textpatch import append_once

logger = logging.getLogger(__name__)

NVM_FILES = ("nvm.sh", "nvm-exec", "bash_completion")
PROFILE_MARKER = "NVM_DIR"
BASS_URL = "https://raw.githubusercontent.com/edc/bass/master/functions/bass.fish"

POSIX_SNIPPET = """
export NVM_DIR="{nvm_dir}"
[ -s "$NVM_DIR/nvm.sh" ] && \\. "$NVM_DIR/nvm.sh"
[ -s "$NVM_DIR/bash_completion" ] && \\. "$NVM_DIR/bash_completion"
"""

FISH_SNIPPET = """
# NVM configuration for fish shell
set -gx NVM_DIR "{nvm_dir}"
if test -s "$NVM_DIR/nvm.sh"
    bass source "$NVM_DIR/nvm.sh"
end
"""


def nvm_installed(nvm_dir: Path) -> bool:
    p = nvm_dir / "nvm.sh"
    return p.is_file() and p.stat().st_size > 0


def node_major_version() -> Optional[int]:
    """Major version of the node on PATH, or None if absent/unparseable."""

    if not command_exists("node"):
        return None
    r = run_cmd(["node", "-v"], check=False)
    m = re.match(r"^v?(\d+)\.", (r.stdout or "").strip())
    if not r.ok or not m:
        return None
    return int(m.group(1))


def _extract_stripped(archive: Path, out_dir: Path) -> None:
    """Extract a .tar.gz dropping its top-level directory (tar --strip-components=1)."""

    kwargs = {"filter": "data"} if hasattr(tarfile, "data_filter") else {}
    with tarfile.open(archive, "r:gz") as tf:
        members = []
        for m in tf.getmembers():
            parts = Path(m.name).parts
            if len(parts) < 2:
                continue
            m.name = str(Path(*parts[1:]))
            members.append(m)
        tf.extractall(out_dir, members=members, **kwargs)


def download_nvm_archive(
    url: str,
    out_dir: Path,
    *,
    connect_timeout: int = 10,
    max_time: int = 60,
    dry_run: bool = False,
) -> None:
    """Fetch the nvm release tarball and unpack it into out_dir."""

    logger.info("Downloading nvm from: %s", url)
    out_dir.mkdir(parents=True, exist_ok=True)
    archive = out_dir.with_name(out_dir.name + ".tar.gz")

    r = run_cmd(
        [
            "curl",
            "-sSL",
            "--connect-timeout",
            str(connect_timeout),
            "--max-time",
            str(max_time),
            url,
            "-o",
            str(archive),
        ],
        check=False,
        dry_run=dry_run,
    )
    if not r.ok:
        raise RuntimeError(f"Failed to download nvm package ({r.returncode}): {r.stderr.strip()}")
    if dry_run:
        return

    logger.info("Package downloaded successfully, extracting...")
    try:
        _extract_stripped(archive, out_dir)
    except (tarfile.TarError, OSError) as e:
        raise RuntimeError(f"Failed to extract nvm package: {e}") from e
    finally:
        archive.unlink(missing_ok=True)

    nvm_exec = out_dir / "nvm-exec"
    if nvm_exec.exists():
        nvm_exec.chmod(0o755)


def _ensure_bass(*, dry_run: bool) -> None:
    if run_cmd(["fish", "-c", "type -q bass"], check=False, dry_run=dry_run).ok:
        return
    logger.warning("bass is not installed. Installing bass for fish shell nvm support...")
    r = run_cmd(
        ["fish", "-c", f"curl -sL {BASS_URL} | source && fisher install edc/bass"],
        check=False,
        dry_run=dry_run,
    )
    if not r.ok:
        logger.warning("Failed to install bass. You may need to install it manually: https://github.com/edc/bass")


def wire_shell_profile(env: HostEnv, nvm_dir: Path, *, dry_run: bool = False) -> bool:
    """Make new shells load nvm. Returns True when the profile was changed."""

    profile = env.shell_profile
    if env.is_fish:
        current = profile.read_text(encoding="utf-8", errors="surrogateescape") if profile.is_file() else ""
        if PROFILE_MARKER not in current:
            _ensure_bass(dry_run=dry_run)
        snippet = FISH_SNIPPET.format(nvm_dir=nvm_dir)
    else:
        snippet = POSIX_SNIPPET.format(nvm_dir=nvm_dir)
    return append_once(profile, snippet, marker=PROFILE_MARKER, dry_run=dry_run)


def install_nvm(
    env: HostEnv,
    nvm_dir: Path,
    *,
    url: str,
    version: str,
    connect_timeout: int = 10,
    max_time: int = 60,
    dry_run: bool = False,
) -> bool:
    """Install nvm into nvm_dir. Returns False if it was already there.

    Raises RuntimeError when the download or copy fails.
    """

    if nvm_installed(nvm_dir):
        logger.info("nvm is already installed at %s", nvm_dir)
        return False

    staging = Path(tempfile.mkdtemp(prefix=f"nvm-offline-{version}-"))
    try:
        download_nvm_archive(
            url,
            staging / "src",
            connect_timeout=connect_timeout,
            max_time=max_time,
            dry_run=dry_run,
        )

        logger.info("Installing nvm to %s", nvm_dir)
        if dry_run:
            logger.info("Would copy %s into %s", ", ".join(NVM_FILES), nvm_dir)
        else:
            nvm_dir.mkdir(parents=True, exist_ok=True)
            for name in NVM_FILES:
                src = staging / "src" / name
                if not src.is_file():
                    raise RuntimeError(f"Failed to copy nvm files: {name} missing from archive")
                shutil.copy2(src, nvm_dir / name)
            (nvm_dir / "nvm-exec").chmod(0o755)

        wire_shell_profile(env, nvm_dir, dry_run=dry_run)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("nvm installed successfully")
    return True


def nvm(nvm_dir: Path, args: str, *, check: bool = True, dry_run: bool = False):
    """Run `nvm <args>` in a bash that has sourced nvm.sh (nvm is a shell function)."""

    script = f'export NVM_DIR={shlex.quote(str(nvm_dir))}; . "$NVM_DIR/nvm.sh"; nvm {args}'
    return run_shell(script, check=check, dry_run=dry_run)


def install_node(nvm_dir: Path, version: str, *, dry_run: bool = False) -> Optional[str]:
    """Install and default node `version` through nvm.

    Returns the directory holding the default node binary, now first on PATH.
    Raises RuntimeError if nvm cannot be loaded or the install fails.
    """

    if not dry_run and not nvm_installed(nvm_dir):
        raise RuntimeError(f"nvm not loaded properly: {nvm_dir / 'nvm.sh'} missing")
    probe = run_shell(
        f'export NVM_DIR={shlex.quote(str(nvm_dir))}; . "$NVM_DIR/nvm.sh"; command -v nvm',
        check=False,
        dry_run=dry_run,
    )
    if not probe.ok:
        raise RuntimeError("nvm not loaded properly")

    ensure_xz(dry_run=dry_run)

    logger.info("Clearing nvm cache...")
    nvm(nvm_dir, "cache clear", check=False, dry_run=dry_run)

    q = shlex.quote(version)
    logger.info("Installing Node.js v%s...", version)
    r = nvm(nvm_dir, f"install {q}", check=False, dry_run=dry_run)
    if not r.ok:
        raise RuntimeError(f"Failed to install Node.js v{version}: {r.stderr.strip()}")
    nvm(nvm_dir, f"alias default {q}", dry_run=dry_run)

    if dry_run:
        return None
    node_path = nvm(nvm_dir, "which default", check=False).stdout.strip().splitlines()
    if not node_path or not node_path[-1].startswith("/"):
        raise RuntimeError("nvm installed node but 'nvm which default' returned no path")
    bin_dir = os.path.dirname(node_path[-1])
    prepend_path(bin_dir)
    logger.info("Node.js v%s installed successfully (%s)", version, bin_dir)
    return bin_dir
