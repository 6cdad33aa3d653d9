from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

REPORT_VERSION = 1


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_report(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    if _detect_format(p) in {"yaml", "yml"}:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"Run report must be an object/dict, got {type(data)}")
    return data


def save_report(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Run report written to %s", p)


def new_state() -> Dict[str, Any]:
    """Fresh per-run state. Reports from earlier runs are never fed back in."""

    return {
        "version": REPORT_VERSION,
        "started_at": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        "system": {},
        "removal": {},
        "runtime": {},
        "target": {},
        "summary": {},
        "execution": {
            "current_step": None,
            "results": {},
            "warnings": [],
            "errors": [],
        },
    }


def record_result(state: Dict[str, Any], step_id: str, result: Dict[str, Any]) -> None:
    state.setdefault("execution", {}).setdefault("results", {})[step_id] = result


def record_error(state: Dict[str, Any], step_id: str, message: str) -> None:
    state.setdefault("execution", {}).setdefault("errors", []).append({"step": step_id, "error": message})


def add_warning(state: Dict[str, Any], step_id: str, message: str) -> None:
    logger.warning(message)
    state.setdefault("execution", {}).setdefault("warnings", []).append({"step": step_id, "warning": message})
