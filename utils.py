"""
Utility functions for GroupSplit
"""
from __future__ import annotations
import os
import uuid
from typing import Optional

EPSILON = 0.01
CURRENCY = "₹"


def new_id() -> str:
    """Generate a fresh unique identifier"""
    return str(uuid.uuid4())


def safe_float(x, default: Optional[float] = 0.0) -> Optional[float]:
    """Convert entered text to float safely, returning default on error"""
    if x is None:
        return default
    if isinstance(x, str):
        x = x.strip()
        if not x:
            return default
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def amounts_match(a: float, b: float, eps: float = EPSILON) -> bool:
    """True when two money values differ by less than eps"""
    return abs(a - b) < eps


def is_settled(balance: float, eps: float = EPSILON) -> bool:
    return abs(balance) <= eps


def format_money(value: float, currency: str = CURRENCY) -> str:
    return f"{currency}{value:.2f}"


def app_dir() -> str:
    """
    Get application data directory: $GROUPSPLIT_HOME or ~/.groupsplit
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("GROUPSPLIT_HOME") or os.path.join(os.path.expanduser("~"), ".groupsplit")
    os.makedirs(path, exist_ok=True)
    return path
