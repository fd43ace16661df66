"""
Referential validator.

Identifier integrity inside one dataset and reference resolution between
datasets. A reference check only runs when the dataset it points into is
present and non-empty, so a missing upload never turns every reference into
an error.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from records import CLIENTS, TASKS, ClientRecord, Record, TaskRecord, WorkerRecord
from report import ErrorKind, ValidationError

logger = logging.getLogger(__name__)


def duplicate_rows(records: Sequence[Record]) -> Dict[int, int]:
    """
    Map the row index of every repeated identifier to the row index of its
    first occurrence. Rows without an identifier are never duplicates.
    """
    first_seen: Dict[str, int] = {}
    duplicates: Dict[int, int] = {}
    for record in records:
        record_id = record.record_id
        if record_id is None:
            continue
        if record_id in first_seen:
            duplicates[record.row_index] = first_seen[record_id]
        else:
            first_seen[record_id] = record.row_index
    return duplicates


def known_task_ids(tasks: Sequence[TaskRecord]) -> FrozenSet[str]:
    return frozenset(t.task_id for t in tasks if t.task_id is not None)


def worker_skill_pool(workers: Sequence[WorkerRecord]) -> FrozenSet[str]:
    return frozenset(skill for w in workers for skill in w.skills)


def check_requested_tasks(
    clients: Sequence[ClientRecord], tasks: Sequence[TaskRecord]
) -> Tuple[ValidationError, ...]:
    task_ids = known_task_ids(tasks)
    errors: List[ValidationError] = []
    for client in clients:
        for task_id in client.requested_task_ids:
            if task_id not in task_ids:
                errors.append(ValidationError(
                    ErrorKind.UNKNOWN_REFERENCE,
                    CLIENTS,
                    client.row_index,
                    "RequestedTaskIDs",
                    f"RequestedTaskID {task_id} not found in tasks",
                ))
    return tuple(errors)


def check_skill_coverage(
    tasks: Sequence[TaskRecord], workers: Sequence[WorkerRecord]
) -> Tuple[ValidationError, ...]:
    skills = worker_skill_pool(workers)
    errors: List[ValidationError] = []
    for task in tasks:
        for skill in task.required_skills:
            if skill not in skills:
                errors.append(ValidationError(
                    ErrorKind.SKILL_COVERAGE,
                    TASKS,
                    task.row_index,
                    "RequiredSkills",
                    f"RequiredSkill {skill} not found in any worker",
                ))
    return tuple(errors)


def validate_references(
    clients: Optional[Sequence[ClientRecord]] = None,
    workers: Optional[Sequence[WorkerRecord]] = None,
    tasks: Optional[Sequence[TaskRecord]] = None,
) -> Tuple[ValidationError, ...]:
    errors: Tuple[ValidationError, ...] = ()

    # i. Client -> Task references
    if clients and tasks:
        errors += check_requested_tasks(clients, tasks)
    elif clients:
        logger.debug("No tasks loaded, skipping RequestedTaskIDs resolution")

    # ii. Task -> Worker skill coverage
    if tasks and workers:
        errors += check_skill_coverage(tasks, workers)
    elif tasks:
        logger.debug("No workers loaded, skipping skill coverage")

    return errors
