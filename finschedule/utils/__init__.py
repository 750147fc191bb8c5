# File: utils/__init__.py
"""Pure Python utilities for finschedule.

Submodules:
    - dt_utils: Calendar-date parsing and month/week arithmetic

Usage:
    from .utils import dt_utils
    from .utils.dt_utils import clamp_month_day
"""

from . import dt_utils

__all__ = ["dt_utils"]
