import pytest

from backend import run_validation
from report import ErrorKind, ReportBuilder, ValidationError, ValidationReport


def test_builder_appends_in_order_without_dedup():
    first = ValidationError(ErrorKind.OUT_OF_RANGE, "clients", 0, "PriorityLevel", "too big")
    second = ValidationError(ErrorKind.MALFORMED_VALUE, "clients", 0, "PriorityLevel", "odd")

    report = ReportBuilder().extend([first]).extend([second, first]).build()

    assert report.errors == (first, second, first)
    assert len(report) == 3
    assert not report.is_clean


def test_report_views():
    errors = (
        ValidationError(ErrorKind.DUPLICATE_ID, "tasks", 1, "TaskID", "Duplicate TaskID: T1"),
        ValidationError(ErrorKind.BROKEN_JSON, "clients", 0, "AttributesJSON", "bad"),
        ValidationError(ErrorKind.DUPLICATE_ID, "tasks", 2, "TaskID", "Duplicate TaskID: T1"),
    )
    report = ValidationReport(errors)

    assert report.for_entity("tasks") == (errors[0], errors[2])
    assert report.count_by_kind() == {"DuplicateID": 2, "BrokenJSON": 1}
    assert report.to_dicts()[1] == {
        "kind": "BrokenJSON",
        "entity": "clients",
        "rowIndex": 0,
        "field": "AttributesJSON",
        "message": "bad",
    }


def test_empty_report_is_clean():
    assert ValidationReport().is_clean
    assert ReportBuilder().build().to_dicts() == []


def test_clean_pipeline(clean_datasets):
    assert run_validation(clean_datasets).is_clean


def test_pipeline_orders_datasets_then_references(clean_datasets):
    datasets = {
        "tasks": clean_datasets["tasks"] + [{"TaskID": "T1", "TaskName": "Again", "RequiredSkills": "welding"}],
        "workers": clean_datasets["workers"] + [{"WorkerID": "W1", "WorkerName": "Clone"}],
        "clients": clean_datasets["clients"] + [{"ClientID": "C9", "ClientName": "New", "RequestedTaskIDs": "T9"}],
    }

    report = run_validation(datasets)

    assert [(e.entity, e.kind) for e in report] == [
        ("workers", ErrorKind.DUPLICATE_ID),
        ("tasks", ErrorKind.DUPLICATE_ID),
        ("clients", ErrorKind.UNKNOWN_REFERENCE),
        ("tasks", ErrorKind.SKILL_COVERAGE),
    ]


def test_pipeline_is_idempotent(clean_datasets):
    clean_datasets["clients"][0]["PriorityLevel"] = 9
    clean_datasets["tasks"][0]["PreferredPhases"] = "[1,2"

    first = run_validation(clean_datasets)
    second = run_validation(clean_datasets)

    assert first == second
    assert first.to_dicts() == second.to_dicts()
    assert len(first) == 2


def test_pipeline_does_not_touch_input_rows(clean_datasets):
    snapshot = {name: [dict(row) for row in rows] for name, rows in clean_datasets.items()}
    run_validation(clean_datasets)
    assert clean_datasets == snapshot


def test_absent_and_empty_datasets():
    assert run_validation({}).is_clean
    assert run_validation({"clients": None, "workers": [], "tasks": []}).is_clean

    report = run_validation({"clients": [{"ClientID": "C1", "ClientName": "A", "RequestedTaskIDs": "T9"}]})
    assert report.is_clean


def test_referential_suppression_then_detection():
    clients = [{"ClientID": "C1", "ClientName": "A", "RequestedTaskIDs": "T9"}]
    tasks = [{"TaskID": "T1", "TaskName": "Sink"}]

    without_tasks = run_validation({"clients": clients})
    with_tasks = run_validation({"clients": clients, "tasks": tasks})

    assert [e.kind for e in without_tasks] == []
    assert [e.kind for e in with_tasks] == [ErrorKind.UNKNOWN_REFERENCE]


def test_unknown_dataset_name_is_rejected():
    with pytest.raises(ValueError):
        run_validation({"rooms": []})


def test_deeply_nested_cells_become_single_errors():
    report = run_validation({
        "clients": [{"ClientID": "C1", "ClientName": "A", "AttributesJSON": "[" * 100000 + "]" * 100000}],
        "workers": [{"WorkerID": "W1", "WorkerName": "B", "AvailableSlots": "[" * 100000}],
    })

    assert [(e.kind, e.field) for e in report] == [
        (ErrorKind.BROKEN_JSON, "AttributesJSON"),
        (ErrorKind.MALFORMED_LIST, "AvailableSlots"),
    ]
