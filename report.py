import enum
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Tuple


class ErrorKind(str, enum.Enum):
    DUPLICATE_ID = "DuplicateID"
    MISSING_REQUIRED = "MissingRequired"
    OUT_OF_RANGE = "OutOfRange"
    MALFORMED_VALUE = "MalformedValue"
    MALFORMED_LIST = "MalformedList"
    BROKEN_JSON = "BrokenJSON"
    UNKNOWN_REFERENCE = "UnknownReference"
    SKILL_COVERAGE = "SkillCoverage"


# --------- Validation Error Class ---------
@dataclass(frozen=True)
class ValidationError:
    """One finding against a single field of a single row."""

    kind: ErrorKind
    entity: str
    row_index: int
    field: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "entity": self.entity,
            "rowIndex": self.row_index,
            "field": self.field,
            "message": self.message,
        }


@dataclass(frozen=True)
class ValidationReport:
    """
    Ordered, read-only result of one validation pass.

    An empty report means the datasets are consistent; callers gate export on
    ``is_clean``.
    """

    errors: Tuple[ValidationError, ...] = ()

    def __iter__(self) -> Iterator[ValidationError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    @property
    def is_clean(self) -> bool:
        return not self.errors

    def for_entity(self, entity: str) -> Tuple[ValidationError, ...]:
        return tuple(e for e in self.errors if e.entity == entity)

    def count_by_kind(self) -> Dict[str, int]:
        counts = Counter(e.kind.value for e in self.errors)
        # keep the taxonomy order so summaries render the same way every time
        return {kind.value: counts[kind.value] for kind in ErrorKind if counts[kind.value]}

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.errors]


class ReportBuilder:
    """Append-only collector; the only place findings are concatenated."""

    def __init__(self):
        self._errors: List[ValidationError] = []

    def extend(self, errors: Iterable[ValidationError]) -> "ReportBuilder":
        self._errors.extend(errors)
        return self

    def build(self) -> ValidationReport:
        return ValidationReport(errors=tuple(self._errors))
