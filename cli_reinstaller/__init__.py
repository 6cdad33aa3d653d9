"""Convergent reinstaller for npm-distributed CLI tools.

Core design goals:
- Converge from any prior state (absent, partial, several channels at once)
- Idempotent, re-runnable steps
- Best-effort removal, strict prerequisites
- Guarded, lock-protected edits to shell profiles and npmrc
- Centralized logging and a per-run report
"""

__all__ = []
