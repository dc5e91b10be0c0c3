"""
Work Hours Tracker
Blueprint registry helpers.
"""

from flask import request


def arg_flag(name: str, default: bool = False) -> bool:
    """Read a boolean query param such as ``?active=true``."""
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
