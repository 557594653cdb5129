"""Pytest fixtures shared by all tests"""
import threading
from unittest.mock import Mock

import pytest

from sheetdesk.helpers.api_client import SheetApiClient
from sheetdesk.helpers.models import CandidateFile
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.resource_store import ResourceStore
from sheetdesk.helpers.transform import to_view_models


def make_record(resource_id, filename=None, status="COMPLETED", **extra):
    record = {
        "id": resource_id,
        "filename": filename or f"survey_{resource_id}.csv",
        "status": status,
        "createdAt": f"2024-01-{int(resource_id) % 28 + 1:02d}T10:00:00.000Z",
        "updatedAt": "2024-02-01T10:00:00.000Z",
        "processedAt": "2024-02-01T10:05:00.000Z",
    }
    record.update(extra)
    return record


@pytest.fixture
def records():
    """Records as returned by GET /csv-files"""
    return [
        make_record("1", "field_survey.csv", "COMPLETED", s3Url="https://files.example/1.csv"),
        make_record("2", "broken_upload.csv", "ERROR", error="Missing column nota1"),
        make_record("3", "quarterly_review.csv", "PROCESSING"),
    ]


@pytest.fixture
def preview_data():
    """Payload as returned by GET /csv-files/{id}/preview"""
    return {
        "headers": ["id", "name", "nota1", "nota2", "notaFinal"],
        "rows": [
            [1, "Ana", "7.5", 8, 7.75],
            [2, "Bruno", "6", 9, 7.5],
        ],
        "totalRows": 120,
        "nota1Media": 6.75,
        "nota2Media": 8.5,
        "notaFinalMedia": 7.625,
    }


@pytest.fixture
def api():
    """Mock API client; tests set return values / side effects per call"""
    return Mock(spec=SheetApiClient)


@pytest.fixture
def notifications():
    return NotificationCenter(ttl=60)


@pytest.fixture
def store(records):
    s = ResourceStore()
    s.set_all(to_view_models(records))
    return s


@pytest.fixture
def gate():
    """Blocks a mocked API call until the test releases it"""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def csv_file():
    return CandidateFile.from_bytes("results.csv", b"id,name,nota1,nota2\n1,Ana,7,8\n")
