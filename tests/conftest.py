import logging

import pytest


def pytest_configure(config):
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@pytest.fixture
def client_rows():
    return [
        {
            "ClientID": "C1",
            "ClientName": "Acme Corp",
            "PriorityLevel": "3",
            "RequestedTaskIDs": "T1,T2",
            "GroupTag": "GroupA",
            "AttributesJSON": '{"location": "New York", "budget": 100000}',
        },
        {
            "ClientID": "C2",
            "ClientName": "Globex",
            "PriorityLevel": 5,
            "RequestedTaskIDs": "T2",
            "GroupTag": "GroupB",
            "AttributesJSON": "",
        },
    ]


@pytest.fixture
def worker_rows():
    return [
        {
            "WorkerID": "W1",
            "WorkerName": "Alice",
            "Skills": "plumbing, carpentry",
            "AvailableSlots": "[1,2,3]",
            "MaxLoadPerPhase": "2",
        },
        {
            "WorkerID": "W2",
            "WorkerName": "Bob",
            "Skills": "electrical",
            "AvailableSlots": "[2, 4]",
            "MaxLoadPerPhase": 1,
        },
    ]


@pytest.fixture
def task_rows():
    return [
        {
            "TaskID": "T1",
            "TaskName": "Install Sink",
            "DurationPhases": "2",
            "RequiredSkills": "plumbing",
            "PreferredPhases": "[1,2]",
            "MaxConcurrent": "1",
        },
        {
            "TaskID": "T2",
            "TaskName": "Rewire Kitchen",
            "DurationPhases": 1,
            "RequiredSkills": "electrical,carpentry",
            "PreferredPhases": "1-3",
            "MaxConcurrent": 2,
        },
    ]


@pytest.fixture
def clean_datasets(client_rows, worker_rows, task_rows):
    return {"clients": client_rows, "workers": worker_rows, "tasks": task_rows}
