from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]


def confirm(question: str, *, default: bool = False, input_fn: Optional[InputFn] = None) -> bool:
    """Ask a y/N question. Non-interactive stdin answers with the default."""

    if input_fn is None:
        if not sys.stdin.isatty():
            logger.info("%s -> %s (non-interactive)", question, "yes" if default else "no")
            return default
        input_fn = input

    suffix = "(Y/n)" if default else "(y/N)"
    try:
        reply = input_fn(f"{question} {suffix}: ").strip().lower()
    except EOFError:
        return default
    if not reply:
        return default
    return reply[0] == "y"
