from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

DEFAULT_PACKAGE = "@iflow-ai/iflow-cli"
DEFAULT_COMMAND = "iflow"
DEFAULT_REGISTRY = "https://registry.npmjs.org"
DEFAULT_NVM_VERSION = "v0.40.3"
DEFAULT_NVM_ARCHIVE_URL = "https://github.com/nvm-sh/nvm/archive/refs/tags/{version}.tar.gz"
DEFAULT_UV_INSTALL_URL = "https://astral.sh/uv/install.sh"


def _section(raw: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"config section '{key}' must be a mapping")
    return value


def _str_list(value: Any, *, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"config key '{key}' must be a list")
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass(frozen=True)
class ReinstallConfig:
    raw: Dict[str, Any] = field(default_factory=dict)
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))

    # target
    @property
    def target_name(self) -> str:
        return str(_section(self.raw, "target").get("name") or "iFlow CLI")

    @property
    def command(self) -> str:
        return str(_section(self.raw, "target").get("command") or DEFAULT_COMMAND)

    @property
    def package(self) -> str:
        return str(_section(self.raw, "target").get("package") or DEFAULT_PACKAGE)

    @property
    def npm_aliases(self) -> List[str]:
        t = _section(self.raw, "target")
        if "npm_aliases" in t:
            return _str_list(t["npm_aliases"], key="target.npm_aliases")
        return [self.package, f"{self.command}-cli", self.command]

    @property
    def os_packages(self) -> List[str]:
        t = _section(self.raw, "target")
        if "os_packages" in t:
            return _str_list(t["os_packages"], key="target.os_packages")
        return [self.command, f"{self.command}-cli"]

    @property
    def binary_paths(self) -> List[str]:
        t = _section(self.raw, "target")
        if "binary_paths" in t:
            return _str_list(t["binary_paths"], key="target.binary_paths")
        c = self.command
        return [
            f"/usr/local/bin/{c}",
            f"/usr/bin/{c}",
            f"~/.npm-global/bin/{c}",
            f"~/.local/bin/{c}",
            f"~/.nvm/versions/node/*/bin/{c}",
            f"/opt/{c}",
            f"/opt/{c}-cli",
        ]

    @property
    def config_dirs(self) -> List[str]:
        t = _section(self.raw, "target")
        if "config_dirs" in t:
            return _str_list(t["config_dirs"], key="target.config_dirs")
        c = self.command
        return [f"~/.{c}", f"~/.config/{c}", f"~/.cache/{c}", f"~/.local/share/{c}"]

    # runtime
    @property
    def node_min_major(self) -> int:
        return int(_section(self.raw, "runtime").get("min_major") or 20)

    @property
    def node_version(self) -> str:
        env = self.environ.get("NODE_VERSION")
        return str(env or _section(self.raw, "runtime").get("pinned_version") or "22")

    @property
    def registry(self) -> str:
        return str(_section(self.raw, "runtime").get("registry") or DEFAULT_REGISTRY)

    # nvm
    @property
    def nvm_version(self) -> str:
        env = self.environ.get("NVM_VERSION")
        return str(env or _section(self.raw, "nvm").get("version") or DEFAULT_NVM_VERSION)

    @property
    def nvm_dir(self) -> str:
        env = self.environ.get("NVM_DIR")
        return str(env or _section(self.raw, "nvm").get("dir") or "~/.nvm")

    @property
    def nvm_archive_url(self) -> str:
        tmpl = str(_section(self.raw, "nvm").get("archive_url") or DEFAULT_NVM_ARCHIVE_URL)
        return tmpl.format(version=self.nvm_version)

    @property
    def connect_timeout(self) -> int:
        return int(_section(self.raw, "nvm").get("connect_timeout") or 10)

    @property
    def max_time(self) -> int:
        return int(_section(self.raw, "nvm").get("max_time") or 60)

    # optional tools
    @property
    def uv_enabled(self) -> bool:
        uv = _section(_section(self.raw, "optional_tools"), "uv")
        return bool(uv.get("enabled", True))

    @property
    def uv_install_url(self) -> str:
        uv = _section(_section(self.raw, "optional_tools"), "uv")
        return str(uv.get("install_url") or DEFAULT_UV_INSTALL_URL)


def load_config(path: Optional[str], *, environ: Optional[Mapping[str, str]] = None) -> ReinstallConfig:
    env = dict(os.environ if environ is None else environ)
    if path is None:
        return ReinstallConfig(raw={}, environ=env)

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("reinstall config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")

    return ReinstallConfig(raw=raw, environ=env)
