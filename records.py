import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

# --------- Dataset names ---------
CLIENTS = "clients"
WORKERS = "workers"
TASKS = "tasks"

# Fixed evaluation and reporting order
DATASET_ORDER = (CLIENTS, WORKERS, TASKS)


class Unparseable(enum.Enum):
    """Marks a structured sub-field whose raw value could not be parsed."""

    TOKEN = "unparseable"

    def __repr__(self):
        return "UNPARSEABLE"


UNPARSEABLE = Unparseable.TOKEN

# A raw cell as handed over by the file decoder or the caller
RawValue = Union[str, int, float, List[Any], Dict[str, Any], None]

Number = Union[int, float]


# --------- Canonical records ---------
@dataclass(frozen=True)
class ClientRecord:
    row_index: int
    client_id: Optional[str]
    client_name: Optional[str]
    priority_level: Union[Number, Unparseable, None]
    requested_task_ids: Tuple[str, ...]
    attributes: Union[Dict[str, Any], List[Any], str, Number, bool, Unparseable, None]

    @property
    def record_id(self) -> Optional[str]:
        return self.client_id


@dataclass(frozen=True)
class WorkerRecord:
    row_index: int
    worker_id: Optional[str]
    worker_name: Optional[str]
    skills: Tuple[str, ...]
    available_slots: Union[Tuple[int, ...], Unparseable, None]
    max_load_per_phase: Union[Number, Unparseable, None]

    @property
    def record_id(self) -> Optional[str]:
        return self.worker_id


@dataclass(frozen=True)
class TaskRecord:
    row_index: int
    task_id: Optional[str]
    task_name: Optional[str]
    required_skills: Tuple[str, ...]
    preferred_phases: Union[Tuple[int, ...], Unparseable, None]
    duration_phases: Union[Number, Unparseable, None]
    max_concurrent: Union[Number, Unparseable, None]

    @property
    def record_id(self) -> Optional[str]:
        return self.task_id


Record = Union[ClientRecord, WorkerRecord, TaskRecord]

# Identifier and name columns per dataset, in check order
REQUIRED_FIELDS: Dict[str, Tuple[str, str]] = {
    CLIENTS: ("ClientID", "ClientName"),
    WORKERS: ("WorkerID", "WorkerName"),
    TASKS: ("TaskID", "TaskName"),
}

# Headers a file must carry before its rows are accepted at all
REQUIRED_HEADERS: Dict[str, Tuple[str, ...]] = {
    CLIENTS: ("ClientID",),
    WORKERS: ("WorkerID",),
    TASKS: ("TaskID", "TaskName"),
}


def check_dataset_name(dataset: str) -> str:
    if dataset not in DATASET_ORDER:
        raise ValueError(
            f"Unknown dataset '{dataset}', expected one of: {', '.join(DATASET_ORDER)}"
        )
    return dataset
