"""
Shared test fixtures: a fake host so no real npm/nvm/dpkg is ever touched.
"""

from __future__ import annotations

import io
import logging
import os
import subprocess
import tarfile
from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest

from cli_reinstaller.config import ReinstallConfig
from cli_reinstaller.context import RunCtx
from cli_reinstaller.lib import command
from cli_reinstaller.lib.env import HostEnv

Match = Union[List[str], str]


class FakeHost:
    """Stands in for the `subprocess` and `shutil` modules inside lib.command."""

    PIPE = subprocess.PIPE

    def __init__(self, bin_dir: Path) -> None:
        self.bin_dir = bin_dir
        self.calls: List[List[str]] = []
        self._handlers: list = []
        self._virtual: dict[str, str] = {}
        self._files: dict[str, Path] = {}

    # -- PATH ---------------------------------------------------------------

    def install(self, name: str) -> None:
        """Make `name` resolve on PATH regardless of the filesystem."""
        self._virtual[name] = str(self.bin_dir / name)

    def install_file(self, name: str, path: Path) -> None:
        """Make `name` resolve to path, but only while that file exists."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n", encoding="utf-8")
        self._files[name] = path

    def uninstall(self, name: str) -> None:
        self._virtual.pop(name, None)
        self._files.pop(name, None)

    def which(self, name: str, mode: int = os.F_OK | os.X_OK, path: Optional[str] = None) -> Optional[str]:
        if name in self._virtual:
            return self._virtual[name]
        p = self._files.get(name)
        if p is not None and os.path.lexists(p):
            return str(p)
        return None

    # -- processes -----------------------------------------------------------

    def on(
        self,
        match: Match,
        *,
        rc: int = 0,
        stdout: Union[str, Callable[[], str]] = "",
        stderr: str = "",
        effect: Optional[Callable[[List[str]], None]] = None,
    ) -> None:
        self._handlers.append((match, rc, stdout, stderr, effect))

    @staticmethod
    def _matches(match: Match, argv: List[str]) -> bool:
        if isinstance(match, str):
            return match in " ".join(argv)
        return argv[: len(match)] == match

    def run(self, argv, **kwargs) -> subprocess.CompletedProcess:
        argv = list(argv)
        self.calls.append(argv)
        for match, rc, out, err, effect in reversed(self._handlers):
            if self._matches(match, argv):
                if effect is not None:
                    effect(argv)
                if callable(out):
                    out = out()
                return subprocess.CompletedProcess(argv, rc, out, err)
        return subprocess.CompletedProcess(argv, 0, "", "")

    def called(self, match: Match) -> bool:
        return any(self._matches(match, c) for c in self.calls)


def make_nvm_tarball(dest: Path, version: str = "v0.40.3") -> None:
    """Write a tarball shaped like GitHub's nvm tag archive."""
    top = f"nvm-{version.lstrip('v')}"
    files = {
        "nvm.sh": "nvm() { :; }\n",
        "nvm-exec": "#!/usr/bin/env bash\n",
        "bash_completion": "# completion\n",
        "README.md": "nvm\n",
    }
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(dest, "w:gz") as tf:
        d = tarfile.TarInfo(top)
        d.type = tarfile.DIRTYPE
        d.mode = 0o755
        tf.addfile(d)
        for name, body in files.items():
            data = body.encode("utf-8")
            info = tarfile.TarInfo(f"{top}/{name}")
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))


def curl_writes_tarball(argv: List[str]) -> None:
    make_nvm_tarball(Path(argv[argv.index("-o") + 1]))


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    """PATH and root logging handlers are process-global; restore both."""
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    root.setLevel(level)
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    for attr in ("_reinstaller_configured", "_reinstaller_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def host(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeHost:
    h = FakeHost(tmp_path / "fakebin")
    monkeypatch.setattr(command, "subprocess", h)
    monkeypatch.setattr(command, "shutil", h)
    return h


@pytest.fixture
def home(tmp_path: Path) -> Path:
    p = tmp_path / "home"
    p.mkdir()
    return p


@pytest.fixture
def host_env(home: Path, tmp_path: Path) -> HostEnv:
    marker = tmp_path / "debian_version"
    marker.write_text("12.5\n", encoding="utf-8")
    return HostEnv(home=home, shell="bash", debian_marker=marker)


@pytest.fixture
def cfg() -> ReinstallConfig:
    """Defaults, except candidate binaries live under the fake home only."""
    return ReinstallConfig(
        raw={
            "target": {
                "binary_paths": [
                    "~/.npm-global/bin/iflow",
                    "~/.local/bin/iflow",
                    "~/.nvm/versions/node/*/bin/iflow",
                    "~/opt/iflow",
                ],
            },
        },
        environ={},
    )


@pytest.fixture
def make_ctx(cfg: ReinstallConfig, host_env: HostEnv):
    def _make(**kwargs) -> RunCtx:
        kwargs.setdefault("cfg", cfg)
        kwargs.setdefault("env", host_env)
        return RunCtx(**kwargs)

    return _make
