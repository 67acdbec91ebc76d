"""Tests for backup export and import."""

import asyncio
import json
from datetime import UTC

import pytest

from health_tracker.domain.backup import ExportDocument
from health_tracker.domain.entries import DailyEntry
from health_tracker.domain.settings import ActivityLevel, Gender
from health_tracker.errors import StorageFault, ValidationFault
from health_tracker.services.backup import BackupService
from health_tracker.services.entries import EntryRepository
from tests.conftest import InMemoryRecordStore, fixed_clock


def _service(
    record_store: InMemoryRecordStore, entry_repository: EntryRepository
) -> BackupService:
    return BackupService(record_store, entry_repository, clock=fixed_clock)


def test_export_json_document_shape(
    record_store: InMemoryRecordStore, entry_repository: EntryRepository
) -> None:
    asyncio.run(entry_repository.save(DailyEntry(date="2024-03-08", weight=80)))
    asyncio.run(
        entry_repository.save(DailyEntry(date="2024-03-10", weight=79, water=4))
    )

    service = _service(record_store, entry_repository)
    payload = json.loads(asyncio.run(service.export_json()))

    assert set(payload) == {"weights", "settings", "exportDate"}
    assert [row["date"] for row in payload["weights"]] == ["2024-03-10", "2024-03-08"]
    assert payload["weights"][0]["water"] == 4
    assert "createdAt" in payload["weights"][0]
    assert payload["settings"]["targetWeight"] == 70
    assert payload["settings"]["activityLevel"] == "sedentary"
    assert payload["exportDate"].startswith("2024-03-10T12:00:00")


def test_import_adds_only_new_days_and_replaces_settings(
    record_store: InMemoryRecordStore, entry_repository: EntryRepository
) -> None:
    asyncio.run(
        entry_repository.save(DailyEntry(date="2024-03-10", weight=79, note="keep"))
    )
    document = json.dumps(
        {
            "weights": [
                {"date": "2024-03-10", "weight": 90, "note": "ignored"},
                {"date": "2024-03-09", "weight": 79.4, "water": None},
                {"date": "2024-03-09", "weight": 60},
            ],
            "settings": {
                "targetWeight": 68,
                "unit": "kg",
                "height": 172,
                "age": 29,
                "gender": "female",
                "activityLevel": "veryActive",
            },
            "exportDate": "2024-03-01T10:00:00Z",
        }
    )

    report = asyncio.run(_service(record_store, entry_repository).import_json(document))

    assert report.added == 1
    assert report.skipped == 2
    assert report.settings_replaced is True
    entries = asyncio.run(entry_repository.load_all())
    assert [(entry.date, entry.weight, entry.note) for entry in entries] == [
        ("2024-03-10", 79, "keep"),
        ("2024-03-09", 79.4, None),
    ]
    settings = asyncio.run(entry_repository.load_settings())
    assert settings.target_weight == 68
    assert settings.gender is Gender.FEMALE
    assert settings.activity_level is ActivityLevel.VERY_ACTIVE


def test_import_without_settings_keeps_current(
    record_store: InMemoryRecordStore, entry_repository: EntryRepository
) -> None:
    document = ExportDocument.model_validate({"weights": [{"date": "2024-03-01"}]})

    report = asyncio.run(
        _service(record_store, entry_repository).import_document(document)
    )

    assert report.settings_replaced is False
    assert "settings" not in record_store.data


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        json.dumps({"weights": [{"date": "03/10/2024", "weight": 80}]}),
        json.dumps({"weights": [{"weight": 80}]}),
        json.dumps({"weights": [{"date": "2024-03-10", "weight": -1}]}),
        json.dumps({"settings": {"targetWeight": 900}}),
        json.dumps({"weights": [{"date": "2024-03-11", "weight": 80}]}),
    ],
)
def test_import_rejects_invalid_documents(
    record_store: InMemoryRecordStore,
    entry_repository: EntryRepository,
    payload: str,
) -> None:
    with pytest.raises(ValidationFault):
        asyncio.run(_service(record_store, entry_repository).import_json(payload))

    assert record_store.transactions == []


def test_import_is_atomic(
    record_store: InMemoryRecordStore, entry_repository: EntryRepository
) -> None:
    record_store.fail_on_commit = True
    document = ExportDocument.model_validate(
        {"weights": [{"date": "2024-03-01", "weight": 80}], "settings": {"age": 30}}
    )

    with pytest.raises(StorageFault):
        asyncio.run(_service(record_store, entry_repository).import_document(document))

    assert record_store.data == {}


def test_export_then_import_into_empty_store(
    record_store: InMemoryRecordStore, entry_repository: EntryRepository
) -> None:
    asyncio.run(entry_repository.save(DailyEntry(date="2024-03-08", weight=80)))
    exported = asyncio.run(_service(record_store, entry_repository).export_json())
    target_store = InMemoryRecordStore()
    target_repository = EntryRepository(target_store, clock=fixed_clock, timezone=UTC)

    report = asyncio.run(
        BackupService(target_store, target_repository, clock=fixed_clock).import_json(
            exported
        )
    )

    assert report.added == 1
    assert asyncio.run(target_repository.load_all()) == asyncio.run(
        entry_repository.load_all()
    )
