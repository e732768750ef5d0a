"""
Logical Names for Record Fields
===============================

These are the **code-facing** field keys used throughout the engine.
They are the exact keys the REST service stores, so a record dict can be
sent as-is once the display-only keys are stripped.

Why Logical Names?
------------------
- Field keys are repeated across schema, derivation, validation and propagation
- A typo in a raw string silently reads ``None``
- Constants make the cross-sheet mapping tables readable

Example
-------
>>> from planning_shared.logical_names import Column
>>> row[Column.EVENTS.RESPONSIBLE_DEPARTMENT]
'销售部'

Naming Convention
-----------------
- Sheet classes: UPPER_SNAKE_CASE matching ``SheetKind`` names
- Column constants: UPPER_SNAKE_CASE, values are the stored snake_case keys
"""

from .sheet_config import SheetKind


class Column:
    """
    Logical field keys organized by sheet.

    Usage:
        >>> Column.PLANNING.BUDGET
        'budget'
    """

    class COMMON:
        """Keys present on every sheet."""
        ID = "id"
        YEAR = "year"
        MONTH = "month"
        PROGRESS = "progress"
        STATUS = "status"
        DELAYED = "delayed"  # display only, never persisted

    class PLANNING:
        """Yearly plan (annual_work_plans, sheet_type=planning)."""
        YEAR = "year"
        MONTH = "month"
        PLAN_NAME = "plan_name"
        DEPARTMENT = "department"
        CATEGORY = "category"
        PRIORITY = "priority"
        START_DATE = "start_date"
        END_DATE = "end_date"
        BUDGET = "budget"
        ACTUAL_COST = "actual_cost"
        RESPONSIBLE_PERSON = "responsible_person"
        EXPECTED_RESULT = "expected_result"
        ACTUAL_RESULT = "actual_result"
        PROGRESS = "progress"
        STATUS = "status"
        DESCRIPTION = "description"
        REMARKS = "remarks"
        SHEET_TYPE = "sheet_type"

    class EVENTS:
        """Major events (major_events)."""
        YEAR = "year"
        MONTH = "month"
        EVENT_NAME = "event_name"
        EVENT_TYPE = "event_type"
        IMPORTANCE = "importance"
        PLANNED_DATE = "planned_date"
        ACTUAL_DATE = "actual_date"
        RESPONSIBLE_DEPARTMENT = "responsible_department"
        RESPONSIBLE_PERSON = "responsible_person"
        BUDGET = "budget"
        ACTUAL_COST = "actual_cost"
        PROGRESS = "progress"
        STATUS = "status"
        DESCRIPTION = "description"
        KEY_POINTS = "key_points"
        SUCCESS_CRITERIA = "success_criteria"
        RISKS = "risks"
        LESSONS_LEARNED = "lessons_learned"

    class MONTHLY:
        """Monthly progress (monthly_progress)."""
        YEAR = "year"
        MONTH = "month"
        TASK_NAME = "task_name"
        DEPARTMENT = "department"
        RESPONSIBLE_PERSON = "responsible_person"
        TARGET_VALUE = "target_value"
        ACTUAL_VALUE = "actual_value"
        PROGRESS = "progress"
        STATUS = "status"
        START_DATE = "start_date"
        END_DATE = "end_date"
        KEY_ACTIVITIES = "key_activities"
        ACHIEVEMENTS = "achievements"
        CHALLENGES = "challenges"
        NEXT_MONTH_PLAN = "next_month_plan"
        SUPPORT_NEEDED = "support_needed"

    class ACTION:
        """5W2H action items (action_plans)."""
        YEAR = "year"
        GOAL = "goal"
        WHAT = "what"
        WHY = "why"
        WHO = "who"
        WHERE = "where"
        START_DATE = "start_date"
        WHEN = "when"
        HOW = "how"
        HOW_MUCH = "how_much"
        DEPARTMENT = "department"
        PRIORITY = "priority"
        PROGRESS = "progress"
        STATUS = "status"
        EXPECTED_RESULT = "expected_result"
        ACTUAL_RESULT = "actual_result"
        REMARKS = "remarks"


# Mapping from SheetKind to Column class
SHEET_COLUMNS = {
    SheetKind.PLANNING: Column.PLANNING,
    SheetKind.EVENTS: Column.EVENTS,
    SheetKind.MONTHLY: Column.MONTHLY,
    SheetKind.ACTION: Column.ACTION,
}

# The department attribute shared across sheets, under its per-sheet key
DEPARTMENT_KEYS = {
    SheetKind.PLANNING: Column.PLANNING.DEPARTMENT,
    SheetKind.EVENTS: Column.EVENTS.RESPONSIBLE_DEPARTMENT,
    SheetKind.MONTHLY: Column.MONTHLY.DEPARTMENT,
    SheetKind.ACTION: Column.ACTION.DEPARTMENT,
}

# Date fields that locate a record in a month when it has no explicit month
MONTH_DATE_KEYS = {
    SheetKind.PLANNING: (Column.PLANNING.START_DATE, Column.PLANNING.END_DATE),
    SheetKind.EVENTS: (Column.EVENTS.PLANNED_DATE, Column.EVENTS.ACTUAL_DATE),
    SheetKind.MONTHLY: (Column.MONTHLY.START_DATE, Column.MONTHLY.END_DATE),
    SheetKind.ACTION: (Column.ACTION.START_DATE, Column.ACTION.WHEN),
}
