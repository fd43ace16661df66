"""
Record normalizer.

Turns raw rows (column name -> untyped cell) into immutable canonical records.
It never raises on bad cell content and never drops a row: anything that cannot
be parsed is stored as ``UNPARSEABLE`` and reported later by the field validator.
"""

import json
import logging
import math
import numbers
import re
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from records import (
    CLIENTS,
    TASKS,
    UNPARSEABLE,
    WORKERS,
    ClientRecord,
    Number,
    RawValue,
    Record,
    TaskRecord,
    Unparseable,
    WorkerRecord,
    check_dataset_name,
)

logger = logging.getLogger(__name__)

PHASE_LIST_RE = re.compile(r"\[\d+(,\d+)*\]", re.ASCII)
PHASE_RANGE_RE = re.compile(r"(\d+)-(\d+)", re.ASCII)
# plain ASCII numerals only: no digit separators, no other scripts
INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)

Row = Mapping[str, RawValue]


# --------- Scalar coercion ---------
def is_absent(value: Any) -> bool:
    """None, NaN and blank text all mean the cell was left empty."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def to_text(value: RawValue) -> Optional[str]:
    if is_absent(value):
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        value = float(value)
        # 7.0 comes back from spreadsheets for an ID typed as 7
        if value.is_integer():
            return str(int(value))
        return str(value)
    return str(value).strip()


def to_number(value: RawValue) -> Union[Number, Unparseable, None]:
    if is_absent(value):
        return None
    if isinstance(value, bool):
        return UNPARSEABLE
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        value = float(value)
        return value if math.isfinite(value) else UNPARSEABLE
    if isinstance(value, str):
        text = value.strip()
        if INTEGER_RE.fullmatch(text):
            return int(text)
        if not DECIMAL_RE.fullmatch(text):
            return UNPARSEABLE
        parsed = float(text)
        return parsed if math.isfinite(parsed) else UNPARSEABLE
    return UNPARSEABLE


def split_list(value: RawValue) -> Tuple[str, ...]:
    """Comma separated cell -> trimmed entries, empty entries dropped."""
    if is_absent(value):
        return ()
    if isinstance(value, (list, tuple)):
        items = [to_text(item) for item in value]
    elif isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    else:
        items = [to_text(value)]
    return tuple(item for item in items if item)


# --------- Structured sub-fields ---------
def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _loads(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError:
        raise ValueError("JSON nested too deeply") from None


def _as_int_list(items: Sequence[Any]) -> Union[Tuple[int, ...], Unparseable]:
    result = []
    for item in items:
        if isinstance(item, bool) or not isinstance(item, numbers.Real):
            return UNPARSEABLE
        if isinstance(item, numbers.Integral):
            result.append(int(item))
        elif float(item).is_integer():
            result.append(int(item))
        else:
            return UNPARSEABLE
    return tuple(result)


def parse_slots(value: RawValue) -> Union[Tuple[int, ...], Unparseable, None]:
    if is_absent(value):
        return None
    if isinstance(value, (list, tuple)):
        return _as_int_list(value)
    if not isinstance(value, str):
        return UNPARSEABLE
    try:
        parsed = _loads(value.replace("'", '"'))
    except ValueError:
        return UNPARSEABLE
    if not isinstance(parsed, list):
        return UNPARSEABLE
    return _as_int_list(parsed)


def parse_phases(value: RawValue) -> Union[Tuple[int, ...], Unparseable, None]:
    """Accepts ``[1,2,3]`` or the inclusive range ``1-3``; nothing else."""
    if is_absent(value):
        return None
    if isinstance(value, (list, tuple)):
        # same decision as the text form: "[]" has no phases either
        return _as_int_list(value) if value else UNPARSEABLE
    if not isinstance(value, str):
        return UNPARSEABLE
    text = value.strip()
    if PHASE_LIST_RE.fullmatch(text):
        return tuple(int(part) for part in text[1:-1].split(","))
    match = PHASE_RANGE_RE.fullmatch(text)
    if match:
        low, high = sorted((int(match.group(1)), int(match.group(2))))
        return tuple(range(low, high + 1))
    return UNPARSEABLE


def parse_attributes(value: RawValue):
    if is_absent(value):
        return None
    if isinstance(value, str):
        try:
            return _loads(value)
        except ValueError:
            return UNPARSEABLE
    # already structured (or a bare JSON scalar from a spreadsheet cell)
    return value


# --------- Per-entity normalization ---------
def normalize_client(row: Row, row_index: int) -> ClientRecord:
    return ClientRecord(
        row_index=row_index,
        client_id=to_text(row.get("ClientID")),
        client_name=to_text(row.get("ClientName")),
        priority_level=to_number(row.get("PriorityLevel")),
        requested_task_ids=split_list(row.get("RequestedTaskIDs")),
        attributes=parse_attributes(row.get("AttributesJSON")),
    )


def normalize_worker(row: Row, row_index: int) -> WorkerRecord:
    return WorkerRecord(
        row_index=row_index,
        worker_id=to_text(row.get("WorkerID")),
        worker_name=to_text(row.get("WorkerName")),
        skills=split_list(row.get("Skills")),
        available_slots=parse_slots(row.get("AvailableSlots")),
        max_load_per_phase=to_number(row.get("MaxLoadPerPhase")),
    )


def normalize_task(row: Row, row_index: int) -> TaskRecord:
    return TaskRecord(
        row_index=row_index,
        task_id=to_text(row.get("TaskID")),
        task_name=to_text(row.get("TaskName")),
        required_skills=split_list(row.get("RequiredSkills")),
        preferred_phases=parse_phases(row.get("PreferredPhases")),
        duration_phases=to_number(row.get("DurationPhases")),
        max_concurrent=to_number(row.get("MaxConcurrent")),
    )


_NORMALIZERS: Dict[str, Callable[[Row, int], Record]] = {
    CLIENTS: normalize_client,
    WORKERS: normalize_worker,
    TASKS: normalize_task,
}


def normalize_rows(entity: str, rows: Sequence[Row]) -> Tuple[Record, ...]:
    normalize = _NORMALIZERS[check_dataset_name(entity)]
    records = tuple(normalize(row, index) for index, row in enumerate(rows))
    logger.debug(f"Normalized {len(records)} {entity} rows")
    return records


def normalize_clients(rows: Sequence[Row]) -> Tuple[ClientRecord, ...]:
    return normalize_rows(CLIENTS, rows)


def normalize_workers(rows: Sequence[Row]) -> Tuple[WorkerRecord, ...]:
    return normalize_rows(WORKERS, rows)


def normalize_tasks(rows: Sequence[Row]) -> Tuple[TaskRecord, ...]:
    return normalize_rows(TASKS, rows)
