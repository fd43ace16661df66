"""
Field validator.

Per-entity syntactic rules on normalized records. Each row is checked in a
fixed order: duplicate identifier, required fields, then every structured
field in column order. A rule applies only when its value is present
(``None`` means the cell was empty), so ``0`` is checked like any other value.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from records import (
    CLIENTS,
    REQUIRED_FIELDS,
    TASKS,
    UNPARSEABLE,
    WORKERS,
    ClientRecord,
    Record,
    TaskRecord,
    WorkerRecord,
    check_dataset_name,
)
from referential_validator import duplicate_rows
from report import ErrorKind, ValidationError

logger = logging.getLogger(__name__)

PRIORITY_RANGE = (1, 5)
MIN_DURATION = 1


def _is_whole(value) -> bool:
    return isinstance(value, int) or float(value).is_integer()


def _identity_errors(
    entity: str, record: Record, name: Optional[str], duplicates: Dict[int, int]
) -> List[ValidationError]:
    id_field, name_field = REQUIRED_FIELDS[entity]
    errors = []

    # a. Duplicate IDs
    if record.row_index in duplicates:
        errors.append(ValidationError(
            ErrorKind.DUPLICATE_ID,
            entity,
            record.row_index,
            id_field,
            f"Duplicate {id_field}: {record.record_id} "
            f"(first seen at row {duplicates[record.row_index]})",
        ))

    # b. Required fields
    for field, value in ((id_field, record.record_id), (name_field, name)):
        if value is None:
            errors.append(ValidationError(
                ErrorKind.MISSING_REQUIRED,
                entity,
                record.row_index,
                field,
                f"Missing required {field}",
            ))
    return errors


def _check_whole_number(
    entity: str,
    record: Record,
    field: str,
    value,
    low: int,
    high: Optional[int] = None,
) -> Optional[ValidationError]:
    if value is None:
        return None
    if value is UNPARSEABLE or not _is_whole(value):
        return ValidationError(
            ErrorKind.MALFORMED_VALUE, entity, record.row_index, field,
            f"{field} must be a whole number",
        )
    if value < low or (high is not None and value > high):
        bounds = f"{low}-{high}" if high is not None else f">= {low}"
        return ValidationError(
            ErrorKind.OUT_OF_RANGE, entity, record.row_index, field,
            f"{field} must be {bounds}, got: {value}",
        )
    return None


def _check_numeric(entity: str, record: Record, field: str, value) -> Optional[ValidationError]:
    if value is UNPARSEABLE:
        return ValidationError(
            ErrorKind.MALFORMED_VALUE, entity, record.row_index, field,
            f"{field} must be a number",
        )
    return None


# --------- Clients ---------
def _client_field_errors(record: ClientRecord) -> List[Optional[ValidationError]]:
    low, high = PRIORITY_RANGE
    errors = [
        _check_whole_number(CLIENTS, record, "PriorityLevel", record.priority_level, low, high)
    ]
    if record.attributes is UNPARSEABLE:
        errors.append(ValidationError(
            ErrorKind.BROKEN_JSON, CLIENTS, record.row_index, "AttributesJSON",
            "AttributesJSON is not valid JSON",
        ))
    return errors


def validate_clients(records: Sequence[ClientRecord]) -> Tuple[ValidationError, ...]:
    return _validate(CLIENTS, records, lambda r: r.client_name, _client_field_errors)


# --------- Workers ---------
def _worker_field_errors(record: WorkerRecord) -> List[Optional[ValidationError]]:
    errors: List[Optional[ValidationError]] = []
    if record.available_slots is UNPARSEABLE:
        errors.append(ValidationError(
            ErrorKind.MALFORMED_LIST, WORKERS, record.row_index, "AvailableSlots",
            "AvailableSlots must be a list of whole numbers, e.g. [1,2,3]",
        ))
    errors.append(_check_numeric(WORKERS, record, "MaxLoadPerPhase", record.max_load_per_phase))
    return errors


def validate_workers(records: Sequence[WorkerRecord]) -> Tuple[ValidationError, ...]:
    return _validate(WORKERS, records, lambda r: r.worker_name, _worker_field_errors)


# --------- Tasks ---------
def _task_field_errors(record: TaskRecord) -> List[Optional[ValidationError]]:
    errors: List[Optional[ValidationError]] = []
    if record.preferred_phases is UNPARSEABLE:
        errors.append(ValidationError(
            ErrorKind.MALFORMED_LIST, TASKS, record.row_index, "PreferredPhases",
            "PreferredPhases must be a list [1,2] or range 1-3",
        ))
    errors.append(_check_whole_number(
        TASKS, record, "DurationPhases", record.duration_phases, MIN_DURATION
    ))
    errors.append(_check_numeric(TASKS, record, "MaxConcurrent", record.max_concurrent))
    return errors


def validate_tasks(records: Sequence[TaskRecord]) -> Tuple[ValidationError, ...]:
    return _validate(TASKS, records, lambda r: r.task_name, _task_field_errors)


def _validate(
    entity: str,
    records: Sequence[Record],
    name_of: Callable[[Record], Optional[str]],
    field_errors: Callable[[Record], List[Optional[ValidationError]]],
) -> Tuple[ValidationError, ...]:
    duplicates = duplicate_rows(records)
    errors: List[ValidationError] = []
    for record in records:
        errors.extend(_identity_errors(entity, record, name_of(record), duplicates))
        errors.extend(e for e in field_errors(record) if e is not None)
    logger.debug(f"Field validation of {len(records)} {entity} rows: {len(errors)} errors")
    return tuple(errors)


_VALIDATORS = {
    CLIENTS: validate_clients,
    WORKERS: validate_workers,
    TASKS: validate_tasks,
}


def validate_dataset(entity: str, records: Sequence[Record]) -> Tuple[ValidationError, ...]:
    return _VALIDATORS[check_dataset_name(entity)](records)
