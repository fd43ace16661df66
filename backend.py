import os
import json
import math
import logging
import pandas as pd
from dataclasses import dataclass
from typing import List, Dict, Any, Mapping, Optional, Sequence, Tuple

from field_validator import validate_dataset
from normalizer import normalize_rows
from records import (
    CLIENTS,
    DATASET_ORDER,
    REQUIRED_HEADERS,
    TASKS,
    WORKERS,
    Record,
    check_dataset_name,
)
from referential_validator import validate_references
from report import ReportBuilder, ValidationReport
from settings import get_settings

logger = logging.getLogger(__name__)

CSV_SUFFIXES = (".csv",)
EXCEL_SUFFIXES = (".xlsx",)

Rows = List[Dict[str, Any]]


class UnsupportedFileError(ValueError):
    pass


class MissingHeadersError(ValueError):
    def __init__(self, dataset: str, missing: Sequence[str]):
        self.dataset = dataset
        self.missing = tuple(missing)
        super().__init__(f"{dataset} file missing required headers: {', '.join(self.missing)}")


class ExportBlockedError(Exception):
    """Raised when export is attempted while the validation report is not empty."""

    def __init__(self, report: ValidationReport):
        self.report = report
        super().__init__(f"Export blocked: {len(report)} validation errors remain")


# --------- File loading ---------

def _clean_data(data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Clean data to ensure JSON serialization compatibility"""
    cleaned_data = []

    for row in data:
        cleaned_row = {}
        for key, value in row.items():
            # Handle different types of invalid values
            if isinstance(value, float):
                if math.isnan(value) or math.isinf(value):
                    cleaned_row[key] = None
                else:
                    cleaned_row[key] = value
            elif isinstance(value, pd.Timestamp):
                cleaned_row[key] = value.isoformat()
            elif not isinstance(value, (list, dict)) and pd.isna(value):
                cleaned_row[key] = None
            else:
                cleaned_row[key] = value
        cleaned_data.append(cleaned_row)

    return cleaned_data


def check_headers(dataset: str, columns: Sequence[str]) -> None:
    missing = [h for h in REQUIRED_HEADERS[check_dataset_name(dataset)] if h not in columns]
    if missing:
        raise MissingHeadersError(dataset, missing)


def read_rows(source, filename: Optional[str] = None, dataset: Optional[str] = None) -> Rows:
    """
    Decode a CSV or XLSX file (path or file object) into raw rows.

    CSV cells all arrive as text, XLSX cells keep the type the spreadsheet gave
    them; the normalizer copes with both. When ``dataset`` is given the
    required headers for it are enforced.
    """
    name = filename or str(getattr(source, "name", source))
    suffix = os.path.splitext(name)[1].lower()
    if suffix in CSV_SUFFIXES:
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    elif suffix in EXCEL_SUFFIXES:
        df = pd.read_excel(source)
    else:
        raise UnsupportedFileError(f"Unsupported file type '{suffix or name}', expected .csv or .xlsx")

    df.columns = [str(c) for c in df.columns]
    if dataset is not None:
        check_headers(dataset, list(df.columns))

    rows = _clean_data(df.to_dict(orient="records"))
    logger.info(f"Read {len(rows)} rows from {name}")
    return rows


# --------- Validation pipeline ---------

def normalize_datasets(datasets: Mapping[str, Optional[Sequence[Mapping[str, Any]]]]) -> Dict[str, Tuple[Record, ...]]:
    """Normalize every present dataset; a missing key or None means absent."""
    normalized = {}
    for name in datasets:
        check_dataset_name(name)
    for name in DATASET_ORDER:
        rows = datasets.get(name)
        if rows is not None:
            normalized[name] = normalize_rows(name, rows)
    return normalized


def run_validation(datasets: Mapping[str, Optional[Sequence[Mapping[str, Any]]]]) -> ValidationReport:
    """
    Full pass: normalize, field-check each dataset (clients, workers, tasks),
    then cross-check references. Pure; safe to re-run on every change.
    """
    normalized = normalize_datasets(datasets)

    builder = ReportBuilder()
    for name, records in normalized.items():
        builder.extend(validate_dataset(name, records))
    builder.extend(validate_references(
        clients=normalized.get(CLIENTS),
        workers=normalized.get(WORKERS),
        tasks=normalized.get(TASKS),
    ))
    report = builder.build()

    logger.info(
        f"Validated {sum(len(r) for r in normalized.values())} rows across "
        f"{len(normalized)} datasets: {len(report)} errors"
    )
    return report


# --------- Prioritization ---------

@dataclass(frozen=True)
class PrioritizationConfig:
    """Client priority vs. task efficiency split, in percent; always sums to 100."""

    client_priority: int = 50
    task_efficiency: int = 50

    def __post_init__(self):
        for label, value in (("clientPriority", self.client_priority), ("taskEfficiency", self.task_efficiency)):
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
                raise ValueError(f"{label} must be a whole number between 0 and 100, got: {value!r}")
        if self.client_priority + self.task_efficiency != 100:
            raise ValueError(
                f"clientPriority and taskEfficiency must sum to 100, "
                f"got {self.client_priority} + {self.task_efficiency}"
            )

    @classmethod
    def from_task_efficiency(cls, task_efficiency: int) -> "PrioritizationConfig":
        if isinstance(task_efficiency, bool) or not isinstance(task_efficiency, int):
            raise ValueError(f"taskEfficiency must be a whole number, got: {task_efficiency!r}")
        return cls(client_priority=100 - task_efficiency, task_efficiency=task_efficiency)

    def to_dict(self) -> Dict[str, int]:
        return {"clientPriority": self.client_priority, "taskEfficiency": self.task_efficiency}


# --------- Main DataManager Class ---------
class DataManager:
    """In-memory datasets of one session. Nothing here outlives the process."""

    def __init__(self):
        self.clients: Optional[Rows] = None
        self.workers: Optional[Rows] = None
        self.tasks: Optional[Rows] = None
        self.prioritization = PrioritizationConfig()

    def load_rows(self, dataset: str, rows: Sequence[Mapping[str, Any]]) -> None:
        """Replace a dataset wholesale with already-decoded rows."""
        check_dataset_name(dataset)
        setattr(self, dataset, [dict(row) for row in rows])
        logger.info(f"Loaded {len(rows)} {dataset} rows")

    def load_file(self, dataset: str, source, filename: Optional[str] = None) -> int:
        rows = read_rows(source, filename=filename, dataset=dataset)
        self.load_rows(dataset, rows)
        return len(rows)

    def load_files(self, clients_path=None, workers_path=None, tasks_path=None):
        paths = {CLIENTS: clients_path, WORKERS: workers_path, TASKS: tasks_path}
        for dataset, path in paths.items():
            if path is not None:
                self.load_file(dataset, path)

    def clear(self, dataset: str) -> None:
        setattr(self, check_dataset_name(dataset), None)

    @property
    def datasets(self) -> Dict[str, Rows]:
        return {name: getattr(self, name) for name in DATASET_ORDER if getattr(self, name) is not None}

    def normalized(self) -> Dict[str, Tuple[Record, ...]]:
        return normalize_datasets(self.datasets)

    def validate_all(self) -> ValidationReport:
        return run_validation(self.datasets)

    def summary(self) -> Dict[str, Any]:
        return {f"total_{name}": len(getattr(self, name) or []) for name in DATASET_ORDER}

    def set_prioritization(self, task_efficiency: int) -> PrioritizationConfig:
        self.prioritization = PrioritizationConfig.from_task_efficiency(task_efficiency)
        return self.prioritization

    def export_all(self, output_dir: Optional[str] = None) -> str:
        report = self.validate_all()
        if not report.is_clean:
            raise ExportBlockedError(report)

        output_dir = output_dir or get_settings().export_dir
        os.makedirs(output_dir, exist_ok=True)
        for name, rows in self.datasets.items():
            pd.DataFrame(rows).to_csv(os.path.join(output_dir, f"{name}.csv"), index=False)
        with open(os.path.join(output_dir, "rules.json"), "w") as f:
            json.dump({"prioritization": self.prioritization.to_dict()}, f, indent=2)

        logger.info(f"Exported {', '.join(self.datasets) or 'no datasets'} to {output_dir}")
        return output_dir
