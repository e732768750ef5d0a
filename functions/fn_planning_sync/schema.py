"""
Schema Registry
===============

Static, per-sheet field definitions. One authoritative ``FieldSpec`` per
column, consumed by derivation, validation, rendering and payload building.

The base definitions are built once at import time and never mutated. The
year-dependent variant (the strict year requires every result field on the
Planning and Monthly sheets) is produced with ``model_copy``.

Usage
-----
>>> from fn_planning_sync.schema import fields_for, required_keys
>>> [f.key for f in fields_for(SheetKind.ACTION)][:3]
['year', 'goal', 'what']
>>> "actual_cost" in required_keys(SheetKind.PLANNING, year=2025)
True
"""

from typing import Dict, List, Optional, Tuple

from planning_shared.logical_names import Column, DEPARTMENT_KEYS
from planning_shared.models import (
    ComputedRule,
    ComputedSpec,
    FieldKind,
    FieldOption,
    FieldSpec,
)
from planning_shared.sheet_config import SheetKind, MONTH_THEMES, MONTHS_PER_YEAR

from .config import get_strict_year

P = Column.PLANNING
E = Column.EVENTS
M = Column.MONTHLY
A = Column.ACTION


def _options(*pairs) -> Tuple[FieldOption, ...]:
    return tuple(FieldOption(value=value, label=label) for value, label in pairs)


PRIORITY_OPTIONS = _options(
    ("critical", "非常重要"),
    ("high", "重要"),
    ("medium", "一般"),
    ("low", "较低"),
)

CATEGORY_OPTIONS = _options(
    ("strategic", "战略性事件"),
    ("operational", "运营性事件"),
    ("risk", "风险性事件"),
    ("opportunity", "机会性事件"),
    ("business", "业务性事件"),
    ("management", "管理性事件"),
    ("temporary", "临时性事件"),
)

EVENT_TYPE_OPTIONS = CATEGORY_OPTIONS[:4]

THEMED_MONTH_OPTIONS = _options(
    *[(i + 1, f"{i + 1}月 - {theme}") for i, theme in enumerate(MONTH_THEMES)]
)

MONTH_OPTIONS = _options(*[(i, f"{i}月") for i in range(1, MONTHS_PER_YEAR + 1)])


def _year() -> FieldSpec:
    return FieldSpec(key=Column.COMMON.YEAR, label="年份", kind=FieldKind.NUMBER, required=True)


def _month(options: Tuple[FieldOption, ...]) -> FieldSpec:
    return FieldSpec(key=Column.COMMON.MONTH, label="月份", kind=FieldKind.SELECT, required=True, options=options)


def _ratio_progress(target_key: str, actual_key: str) -> FieldSpec:
    return FieldSpec(
        key=Column.COMMON.PROGRESS,
        label="进度（%）",
        kind=FieldKind.COMPUTED,
        computed=ComputedSpec(rule=ComputedRule.RATIO_PROGRESS, inputs=(target_key, actual_key)),
    )


def _status(*reference_dates: str) -> FieldSpec:
    return FieldSpec(
        key=Column.COMMON.STATUS,
        label="状态",
        kind=FieldKind.COMPUTED,
        computed=ComputedSpec(rule=ComputedRule.STATUS, inputs=(Column.COMMON.PROGRESS,) + reference_dates),
    )


def _field(key: str, label: str, kind: FieldKind = FieldKind.TEXT, required: bool = False,
           options: Tuple[FieldOption, ...] = ()) -> FieldSpec:
    return FieldSpec(key=key, label=label, kind=kind, required=required, options=options)


# ============== Base Definitions ==============

_BASE_FIELDS: Dict[SheetKind, Tuple[FieldSpec, ...]] = {
    SheetKind.PLANNING: (
        _year(),
        _month(THEMED_MONTH_OPTIONS),
        _field(P.PLAN_NAME, "计划名称", required=True),
        _field(P.DEPARTMENT, "负责部门", FieldKind.SELECT, required=True),
        _field(P.CATEGORY, "类别", FieldKind.SELECT, required=True, options=CATEGORY_OPTIONS),
        _field(P.PRIORITY, "优先级", FieldKind.SELECT, required=True, options=PRIORITY_OPTIONS),
        _field(P.START_DATE, "开始日期", FieldKind.DATE, required=True),
        _field(P.END_DATE, "结束日期", FieldKind.DATE, required=True),
        _field(P.BUDGET, "预算（万元）", FieldKind.NUMBER, required=True),
        _field(P.ACTUAL_COST, "实际成本（万元）", FieldKind.NUMBER),
        _field(P.RESPONSIBLE_PERSON, "负责人", required=True),
        _field(P.EXPECTED_RESULT, "预期结果", FieldKind.TEXTAREA, required=True),
        _field(P.ACTUAL_RESULT, "实际结果", FieldKind.TEXTAREA),
        _ratio_progress(P.BUDGET, P.ACTUAL_COST),
        _status(P.END_DATE, P.START_DATE),
        _field(P.DESCRIPTION, "预期成果", FieldKind.TEXTAREA),
        _field(P.REMARKS, "备注", FieldKind.TEXTAREA),
    ),
    SheetKind.EVENTS: (
        _year(),
        _month(MONTH_OPTIONS),
        _field(E.EVENT_NAME, "事件名称", required=True),
        _field(E.EVENT_TYPE, "事件类型", FieldKind.SELECT, required=True, options=EVENT_TYPE_OPTIONS),
        _field(E.IMPORTANCE, "重要性", FieldKind.SELECT, options=PRIORITY_OPTIONS),
        _field(E.PLANNED_DATE, "计划日期", FieldKind.DATE),
        _field(E.ACTUAL_DATE, "实际日期", FieldKind.DATE),
        _field(E.RESPONSIBLE_DEPARTMENT, "负责部门", FieldKind.SELECT, required=True),
        _field(E.RESPONSIBLE_PERSON, "负责人"),
        _field(E.BUDGET, "预算（万元）", FieldKind.NUMBER),
        _field(E.ACTUAL_COST, "实际成本（万元）", FieldKind.NUMBER),
        _ratio_progress(E.BUDGET, E.ACTUAL_COST),
        _status(E.PLANNED_DATE),
        _field(E.DESCRIPTION, "事件描述", FieldKind.TEXTAREA),
        _field(E.KEY_POINTS, "关键要点", FieldKind.TEXTAREA),
        _field(E.SUCCESS_CRITERIA, "成功标准", FieldKind.TEXTAREA),
        _field(E.RISKS, "风险", FieldKind.TEXTAREA),
        _field(E.LESSONS_LEARNED, "经验教训", FieldKind.TEXTAREA),
    ),
    SheetKind.MONTHLY: (
        _year(),
        _month(MONTH_OPTIONS),
        _field(M.TASK_NAME, "任务名称", required=True),
        _field(M.DEPARTMENT, "负责部门", FieldKind.SELECT, required=True),
        _field(M.RESPONSIBLE_PERSON, "负责人", required=True),
        _field(M.TARGET_VALUE, "目标值", FieldKind.NUMBER),
        _field(M.ACTUAL_VALUE, "实际值", FieldKind.NUMBER),
        _ratio_progress(M.TARGET_VALUE, M.ACTUAL_VALUE),
        _status(M.END_DATE),
        _field(M.START_DATE, "开始日期", FieldKind.DATE),
        _field(M.END_DATE, "结束日期", FieldKind.DATE),
        _field(M.KEY_ACTIVITIES, "关键活动", FieldKind.TEXTAREA),
        _field(M.ACHIEVEMENTS, "主要成果", FieldKind.TEXTAREA),
        _field(M.CHALLENGES, "遇到的挑战", FieldKind.TEXTAREA),
        _field(M.NEXT_MONTH_PLAN, "下月计划", FieldKind.TEXTAREA),
        _field(M.SUPPORT_NEEDED, "需要支持", FieldKind.TEXTAREA),
    ),
    SheetKind.ACTION: (
        _year(),
        _field(A.GOAL, "目标"),
        _field(A.WHAT, "What（做什么）", FieldKind.TEXTAREA, required=True),
        _field(A.WHY, "Why（为什么做）", FieldKind.TEXTAREA, required=True),
        _field(A.WHO, "Who（谁来做）", required=True),
        _field(A.WHERE, "Where（在哪里做）"),
        _field(A.START_DATE, "开始日期", FieldKind.DATE),
        _field(A.WHEN, "When（什么时候做）", FieldKind.DATE, required=True),
        _field(A.HOW, "How（如何做）", FieldKind.TEXTAREA),
        _field(A.HOW_MUCH, "How Much（多少成本）", FieldKind.NUMBER),
        _field(A.DEPARTMENT, "负责部门", FieldKind.SELECT, required=True),
        _field(A.PRIORITY, "优先级", FieldKind.SELECT, required=True, options=PRIORITY_OPTIONS),
        _field(A.PROGRESS, "进度（%）", FieldKind.NUMBER),
        _status(A.WHEN, A.START_DATE),
        _field(A.EXPECTED_RESULT, "预期结果", FieldKind.TEXTAREA),
        _field(A.ACTUAL_RESULT, "实际结果", FieldKind.TEXTAREA),
        _field(A.REMARKS, "备注", FieldKind.TEXTAREA),
    ),
}

# Extra required fields in the strict year
STRICT_YEAR_REQUIRED: Dict[SheetKind, Tuple[str, ...]] = {
    SheetKind.PLANNING: (P.ACTUAL_COST, P.ACTUAL_RESULT),
    SheetKind.MONTHLY: (M.TARGET_VALUE, M.ACTUAL_VALUE, M.START_DATE, M.END_DATE),
}

DERIVED_KEYS = (Column.COMMON.PROGRESS, Column.COMMON.STATUS)
STRUCTURAL_KEYS = (Column.COMMON.YEAR, Column.COMMON.MONTH)


# ============== Lookups ==============

def fields_for(sheet: SheetKind, year: Optional[int] = None) -> List[FieldSpec]:
    """
    Ordered field definitions of a sheet.

    Args:
        sheet: Sheet kind. Anything else raises KeyError.
        year: Optional context. The strict year returns a copy with the
              additional required fields switched on.
    """
    base = _BASE_FIELDS[sheet]
    if year is None or year != get_strict_year():
        return list(base)

    strict_keys = STRICT_YEAR_REQUIRED.get(sheet, ())
    return [
        spec.model_copy(update={"required": True}) if spec.key in strict_keys else spec
        for spec in base
    ]


def field(sheet: SheetKind, key: str) -> FieldSpec:
    """Single field definition. Raises KeyError for unknown keys."""
    for spec in _BASE_FIELDS[sheet]:
        if spec.key == key:
            return spec
    raise KeyError(f"{sheet} has no field {key!r}")


def has_field(sheet: SheetKind, key: str) -> bool:
    return any(spec.key == key for spec in _BASE_FIELDS[sheet])


def required_keys(sheet: SheetKind, year: Optional[int] = None) -> List[str]:
    return [spec.key for spec in fields_for(sheet, year) if spec.required]


def content_fields(sheet: SheetKind) -> List[FieldSpec]:
    """
    Fields that make a row count as "has data".

    Derived fields, year/month and the department attribute are excluded.
    The department is propagated from sibling sheets into empty slots, so it
    must not turn an otherwise empty slot into a row that needs validation.
    """
    excluded = set(DERIVED_KEYS) | set(STRUCTURAL_KEYS) | {DEPARTMENT_KEYS[sheet]}
    return [
        spec for spec in _BASE_FIELDS[sheet]
        if spec.key not in excluded and spec.kind != FieldKind.COMPUTED
    ]


def computed_spec(sheet: SheetKind, key: str) -> Optional[ComputedSpec]:
    """ComputedSpec of a COMPUTED field, None for every other field."""
    if not has_field(sheet, key):
        return None
    return field(sheet, key).computed


def ratio_inputs(sheet: SheetKind) -> Optional[Tuple[str, str]]:
    """(target, actual) keys when the sheet derives progress from a ratio."""
    spec = computed_spec(sheet, Column.COMMON.PROGRESS)
    if spec is None or spec.rule != ComputedRule.RATIO_PROGRESS:
        return None
    return spec.inputs[0], spec.inputs[1]


def status_reference_keys(sheet: SheetKind) -> Tuple[str, ...]:
    """Date keys feeding the delayed flag, in priority order."""
    spec = computed_spec(sheet, Column.COMMON.STATUS)
    return spec.inputs[1:] if spec is not None else ()


def blank_row(sheet: SheetKind, year: int, month: Optional[int] = None) -> Dict[str, object]:
    """An unsaved row with every field present and empty."""
    row: Dict[str, object] = {spec.key: None for spec in _BASE_FIELDS[sheet]}
    row[Column.COMMON.ID] = None
    row[Column.COMMON.YEAR] = year
    if month is not None:
        row[Column.COMMON.MONTH] = month
    return row
