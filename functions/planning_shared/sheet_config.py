"""
Centralized Sheet Configuration
==============================

This module defines the four planning sheets, the REST endpoints behind them
and the calendar constants shared by every sheet.
It serves as the **single source of truth** for sheet identity.

Purpose
-------
- Eliminate hardcoded sheet names and endpoints throughout the codebase
- Keep the month themes of the yearly plan in one place
- Provide the slot layout (12 months) used by the month-based sheets

Usage
-----
Always use these constants instead of hardcoding:

    >>> from planning_shared import SheetKind, SHEET_ENDPOINTS
    >>>
    >>> # Good - use constants
    >>> client.list_records(SHEET_ENDPOINTS[SheetKind.EVENTS], {"year": 2025})
    >>>
    >>> # Bad - hardcoded strings (don't do this!)
    >>> client.list_records("/major-events", {"year": 2025})

Module Contents
---------------
SheetKind : Enum
    The four logical sheets of the annual planning workbook
SHEET_ENDPOINTS : dict
    Mapping of sheet to REST collection path
SHEET_FIXED_FILTERS : dict
    Filters/payload keys that discriminate a sheet sharing a collection
SHEET_LABELS : dict
    Display titles of the sheets
MONTH_THEMES : list
    Theme of each month in the yearly plan
MONTH_SLOTTED_SHEETS : tuple
    Sheets whose grid is always 12 month slots
"""

from typing import Dict, List, Any
from enum import Enum


class SheetKind(str, Enum):
    """
    The four planning sheets.
    Determines which schema, derived rules and endpoint apply.
    """
    PLANNING = "planning"
    EVENTS = "events"
    MONTHLY = "monthly"
    ACTION = "action"


# REST collection per sheet
SHEET_ENDPOINTS: Dict[SheetKind, str] = {
    SheetKind.PLANNING: "/annual-work-plans",
    SheetKind.EVENTS: "/major-events",
    SheetKind.MONTHLY: "/monthly-progress",
    SheetKind.ACTION: "/action-plans",
}

# annual_work_plans also stores other sheet types, planning rows are tagged
SHEET_FIXED_FILTERS: Dict[SheetKind, Dict[str, Any]] = {
    SheetKind.PLANNING: {"sheet_type": "planning"},
    SheetKind.EVENTS: {},
    SheetKind.MONTHLY: {},
    SheetKind.ACTION: {},
}

SHEET_LABELS: Dict[SheetKind, str] = {
    SheetKind.PLANNING: "年度工作规划",
    SheetKind.EVENTS: "大事件提炼",
    SheetKind.MONTHLY: "月度推进计划",
    SheetKind.ACTION: "5W2H行动计划",
}

MONTHS_PER_YEAR = 12

MONTH_SLOTTED_SHEETS = (SheetKind.PLANNING, SheetKind.EVENTS, SheetKind.MONTHLY)

MONTH_THEMES: List[str] = [
    "规划导航月",
    "招聘月",
    "人才引备战月",
    "产品月",
    "产品月",
    "年中总结月",
    "学习月",
    "备战月",
    "抢战月",
    "丰收月",
    "冲刺月",
    "总结月",
]

# Legacy planning rows carry the theme as plan name instead of a month
THEME_TO_MONTH: Dict[str, int] = {
    "规划导航月": 1,
    "招聘月": 2,
    "人才引备战月": 3,
    "产品月 (4月)": 4,
    "产品月": 4,
    "产品月 (5月)": 5,
    "年中总结月": 6,
    "学习月": 7,
    "备战月": 8,
    "抢战月": 9,
    "丰收月": 10,
    "冲刺月": 11,
    "总结月": 12,
}
