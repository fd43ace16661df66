import math

import pytest

from normalizer import (
    is_absent,
    normalize_clients,
    normalize_rows,
    normalize_tasks,
    normalize_workers,
    parse_attributes,
    parse_phases,
    parse_slots,
    split_list,
    to_number,
    to_text,
)
from records import UNPARSEABLE, ClientRecord


@pytest.mark.parametrize("value", [None, "", "   ", float("nan")])
def test_blank_cells_are_absent(value):
    assert is_absent(value)


@pytest.mark.parametrize("value", [0, "0", 0.0, [], {}])
def test_falsy_values_are_present(value):
    assert not is_absent(value)


def test_to_text_trims_and_drops_spreadsheet_float_suffix():
    assert to_text("  C1 ") == "C1"
    assert to_text(7.0) == "7"
    assert to_text(7) == "7"
    assert to_text(2.5) == "2.5"
    assert to_text("") is None


def test_to_number_parses_text_and_marks_garbage():
    assert to_number("3") == 3
    assert isinstance(to_number("3"), int)
    assert to_number(" 2.5 ") == 2.5
    assert to_number(4) == 4
    assert to_number("") is None
    assert to_number("three") is UNPARSEABLE
    assert to_number("inf") is UNPARSEABLE
    assert to_number(True) is UNPARSEABLE
    assert to_number([1]) is UNPARSEABLE


def test_split_list_trims_and_drops_empty_entries():
    assert split_list("plumbing, electrical ,,") == ("plumbing", "electrical")
    assert split_list(["T1", " T2 ", ""]) == ("T1", "T2")
    assert split_list(None) == ()
    assert split_list(5) == ("5",)


def test_parse_slots_accepts_numeric_lists():
    assert parse_slots("[1,2,3]") == (1, 2, 3)
    assert parse_slots(" [1, 2] ") == (1, 2)
    assert parse_slots([3, 4.0]) == (3, 4)
    assert parse_slots("") is None


@pytest.mark.parametrize("value", ["[1,'a']", "['1', '2']", '["1","2"]', ["1", "2"], "1,2", "{'a': 1}", "[1.5]", "[NaN]", 3, "[true]"])
def test_parse_slots_marks_bad_shapes(value):
    assert parse_slots(value) is UNPARSEABLE


def test_parse_phases_list_and_range_grammars():
    assert parse_phases("[1,2,3]") == (1, 2, 3)
    assert parse_phases("2-4") == (2, 3, 4)
    assert parse_phases(" 2-4 ") == (2, 3, 4)
    assert parse_phases("4-2") == (2, 3, 4)
    assert parse_phases([1, 3]) == (1, 3)
    assert parse_phases(None) is None


@pytest.mark.parametrize("value", ["[1,2", "2–4", "[1, 2]", "1-", "a-b", "3", 3, "[]"])
def test_parse_phases_rejects_anything_else(value):
    assert parse_phases(value) is UNPARSEABLE


def test_parse_attributes():
    assert parse_attributes('{"a":1}') == {"a": 1}
    assert parse_attributes({"a": 1}) == {"a": 1}
    assert parse_attributes("{a:1}") is UNPARSEABLE
    assert parse_attributes("NaN") is UNPARSEABLE
    assert parse_attributes("  ") is None


def test_row_count_and_index_survive_fully_malformed_rows():
    rows = [
        {"ClientID": None, "PriorityLevel": "x", "AttributesJSON": "{"},
        {},
        {"ClientID": "C3", "ClientName": "Initech", "PriorityLevel": 2},
    ]

    records = normalize_clients(rows)

    assert len(records) == len(rows)
    assert [r.row_index for r in records] == [0, 1, 2]
    assert records[0].priority_level is UNPARSEABLE
    assert records[0].attributes is UNPARSEABLE
    assert records[1] == ClientRecord(
        row_index=1,
        client_id=None,
        client_name=None,
        priority_level=None,
        requested_task_ids=(),
        attributes=None,
    )


def test_worker_and_task_records(worker_rows, task_rows):
    workers = normalize_workers(worker_rows)
    tasks = normalize_tasks(task_rows)

    assert workers[0].skills == ("plumbing", "carpentry")
    assert workers[1].available_slots == (2, 4)
    assert workers[0].max_load_per_phase == 2
    assert tasks[1].required_skills == ("electrical", "carpentry")
    assert tasks[1].preferred_phases == (1, 2, 3)
    assert tasks[0].duration_phases == 2


def test_records_are_immutable(client_rows):
    record = normalize_clients(client_rows)[0]
    with pytest.raises(AttributeError):
        record.client_id = "C9"


def test_columns_match_by_exact_name():
    record = normalize_rows("clients", [{"clientid": "C1", "ClientName": "Acme"}])[0]
    assert record.client_id is None


def test_unknown_entity_is_rejected():
    with pytest.raises(ValueError):
        normalize_rows("rooms", [])


def test_nan_cell_from_dataframe_is_absent():
    record = normalize_tasks([{"TaskID": "T1", "DurationPhases": math.nan}])[0]
    assert record.duration_phases is None


def test_deeply_nested_json_is_unparseable_not_an_exception():
    nested = "[" * 100000 + "]" * 100000

    client = normalize_clients([{"ClientID": "C1", "ClientName": "A", "AttributesJSON": nested}])[0]
    worker = normalize_workers([{"WorkerID": "W1", "WorkerName": "A", "AvailableSlots": "[" * 100000}])[0]

    assert client.attributes is UNPARSEABLE
    assert worker.available_slots is UNPARSEABLE


@pytest.mark.parametrize("value", ["1_000", "٣", "0x10", "1,5", "Infinity", "1e400"])
def test_to_number_only_takes_plain_ascii_numerals(value):
    assert to_number(value) is UNPARSEABLE


@pytest.mark.parametrize("value, expected", [("+4", 4), ("-2", -2), ("1e3", 1000.0), (".5", 0.5), ("5.", 5.0)])
def test_to_number_accepts_ordinary_notation(value, expected):
    assert to_number(value) == expected


def test_empty_phase_list_matches_text_decision():
    assert parse_phases([]) is UNPARSEABLE
    assert parse_phases("[]") is UNPARSEABLE
