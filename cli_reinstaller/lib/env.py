from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

SHELL_PROFILES = {
    "bash": ".bashrc",
    "zsh": ".zshrc",
    "fish": ".config/fish/config.fish",
}
DEFAULT_PROFILE = ".profile"


@dataclass(frozen=True)
class HostEnv:
    """The parts of the invoking user's environment the installer depends on."""

    home: Path
    shell: str
    debian_marker: Path = Path("/etc/debian_version")

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "HostEnv":
        environ = os.environ if environ is None else environ
        home = Path(environ.get("HOME") or Path.home())
        shell = os.path.basename(environ.get("SHELL") or "") or "sh"
        return cls(home=home, shell=shell)

    @property
    def is_fish(self) -> bool:
        return self.shell == "fish"

    @property
    def shell_profile(self) -> Path:
        return self.home / SHELL_PROFILES.get(self.shell, DEFAULT_PROFILE)

    @property
    def reactivate_hint(self) -> str:
        rel = SHELL_PROFILES.get(self.shell)
        if rel is None:
            return f"source ~/{DEFAULT_PROFILE}  # or reload your shell"
        return f"source ~/{rel}"

    @property
    def is_debian_family(self) -> bool:
        return self.debian_marker.exists()

    def expand(self, path: str) -> str:
        """Expand a leading ~ against this environment's home (not the process's)."""

        if path == "~":
            return str(self.home)
        if path.startswith("~/"):
            return str(self.home / path[2:])
        return path


def prepend_path(*dirs: str) -> None:
    """Put directories at the front of PATH for this process and its children."""

    front = [d for d in dict.fromkeys(dirs) if d]
    rest = [c for c in os.environ.get("PATH", "").split(os.pathsep) if c and c not in front]
    os.environ["PATH"] = os.pathsep.join([*front, *rest])
