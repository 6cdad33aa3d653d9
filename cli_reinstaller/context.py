from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import ReinstallConfig
from .lib.env import HostEnv
from .lib.prompt import InputFn, confirm

CONFIG_DIR_POLICIES = ("ask", "purge", "keep")


@dataclass(frozen=True)
class RunCtx:
    cfg: ReinstallConfig
    env: HostEnv
    dry_run: bool = False
    assume_yes: bool = False
    config_dir_policy: str = "ask"
    input_fn: Optional[InputFn] = None

    def __post_init__(self) -> None:
        if self.config_dir_policy not in CONFIG_DIR_POLICIES:
            raise ValueError(f"config_dir_policy must be one of {CONFIG_DIR_POLICIES}")

    @property
    def nvm_dir(self) -> Path:
        return Path(self.env.expand(self.cfg.nvm_dir))

    @property
    def npmrc(self) -> Path:
        return self.env.home / ".npmrc"

    def ask(self, question: str) -> bool:
        return confirm(question, default=False, input_fn=self.input_fn)
