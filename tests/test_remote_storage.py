"""Tests for the object-store backed daily log storage."""

import pytest
from datetime import date, datetime, timedelta

from dailylog.domain.errors import NotFoundError, StorageError, ValidationError
from dailylog.domain.models import CreateEntryRequest, UpdateEntryRequest, DayLog, SummaryRequest
from dailylog.storage import (
    InMemoryObjectStore,
    ListingTruncatedError,
    ObjectStoreError,
    RemoteLogStorage,
    VersionConflictError,
)

DAY = date(2025, 9, 29)


class FlakyStore(InMemoryObjectStore):
    """Simulates another writer updating the object right before our write."""

    def __init__(self, conflicts):
        super().__init__()
        self.conflicts = conflicts
        self.put_attempts = 0

    def put(self, path, content, version, message):
        self.put_attempts += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise VersionConflictError(f"{path}: stale version", status_code=409)
        return super().put(path, content, version, message)


class BrokenStore(InMemoryObjectStore):
    """Every call fails as if the network were down."""

    def get(self, path):
        raise ObjectStoreError("connection refused")

    def list_objects(self, prefix):
        raise ObjectStoreError("connection refused")

    def ping(self):
        raise ObjectStoreError("connection refused")


class TruncatingStore(InMemoryObjectStore):
    """Refuses to return complete listings, like a large GitHub tree."""

    def list_objects(self, prefix):
        raise ListingTruncatedError(f"list {prefix}: truncated")


class MidnightRequest(CreateEntryRequest):
    """Each clock read lands one day later, starting a second before midnight."""

    reads = 0

    def resolve_timestamp(self):
        moment = datetime(2025, 9, 29, 23, 59, 59) + timedelta(days=self.reads)
        self.reads += 1
        return moment


@pytest.fixture
def store():
    """An empty in-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def storage(store):
    """Storage provider over the in-memory store."""
    return RemoteLogStorage(store, base_path="logs")


def create(storage, title="Deploy API", day=DAY, **kwargs):
    return storage.create_entry(CreateEntryRequest(title=title, date=day, **kwargs))


def test_day_path(storage):
    """Day objects live under base_path/YYYY/MM/."""
    assert storage.day_path(DAY) == "logs/2025/09/2025-09-29.json"
    assert RemoteLogStorage(InMemoryObjectStore(), base_path="").day_path(DAY) == \
        "2025/09/2025-09-29.json"


def test_get_missing_day_is_empty(storage, store):
    """Reading a day that was never written gives an empty log and writes nothing."""
    day_log = storage.get_day(DAY)

    assert day_log.date == DAY
    assert day_log.entries == []
    assert day_log.total_entries == 0
    assert store.list_objects("") == []


def test_create_entry_persists(storage, store):
    entry = create(storage, status=8, tags=["deployment"])

    assert entry.id.startswith("entry_")
    assert entry.timestamp.date() == DAY
    assert store.get("logs/2025/09/2025-09-29.json") is not None

    day_log = storage.get_day(DAY)
    assert [e.id for e in day_log.entries] == [entry.id]
    assert day_log.status_average == 8.0


def test_entry_ids_strictly_increase(storage):
    ids = [create(storage, title=f"Task {i}").id for i in range(5)]
    numbers = [int(i.split("_")[1]) for i in ids]
    assert numbers == sorted(numbers)
    assert len(set(numbers)) == 5


def test_create_entry_validation_before_store(storage, store):
    """Invalid requests never reach the store."""
    with pytest.raises(ValidationError):
        create(storage, status=42)
    assert store.list_objects("") == []


def test_get_entry(storage):
    entry = create(storage)
    assert storage.get_entry(entry.id, DAY).title == "Deploy API"

    with pytest.raises(NotFoundError) as exc:
        storage.get_entry("entry_0", DAY)
    assert exc.value.resource == "log entry"


def test_update_entry(storage):
    entry = create(storage, status=4)
    updated = storage.update_entry(
        UpdateEntryRequest(id=entry.id, date=DAY, title="Deploy API v2", status=9)
    )

    assert updated.title == "Deploy API v2"
    day_log = storage.get_day(DAY)
    assert day_log.get_entry(entry.id).status == 9
    assert day_log.status_average == 9.0


def test_update_missing_entry(storage):
    create(storage)
    with pytest.raises(NotFoundError):
        storage.update_entry(UpdateEntryRequest(id="entry_0", date=DAY, title="x"))


def test_update_requires_date(storage):
    with pytest.raises(ValidationError) as exc:
        storage.update_entry(UpdateEntryRequest(id="entry_1", title="x"))
    assert exc.value.field == "date"


def test_delete_entry(storage):
    first = create(storage, status=8)
    create(storage, title="Review PR", status=4)

    storage.delete_entry(first.id, DAY)

    day_log = storage.get_day(DAY)
    assert day_log.total_entries == 1
    assert day_log.status_average == 4.0


def test_delete_unknown_entry_leaves_day_untouched(storage, store):
    """Deleting an unknown id raises NotFoundError and writes nothing."""
    create(storage)
    path = storage.day_path(DAY)
    version_before = store.get(path).version

    with pytest.raises(NotFoundError) as exc:
        storage.delete_entry("entry_does_not_exist", DAY)

    assert exc.value.resource == "log entry"
    assert exc.value.id == "entry_does_not_exist"
    assert store.get(path).version == version_before


def test_delete_day(storage, store):
    create(storage)
    storage.delete_day(DAY)
    assert store.get(storage.day_path(DAY)) is None

    with pytest.raises(NotFoundError) as exc:
        storage.delete_day(DAY)
    assert exc.value.resource == "day log"


def test_save_day_creates_and_replaces(storage, store):
    day_log = DayLog(date=DAY)
    day_log.day_summary = "first"
    storage.save_day(day_log)

    day_log.day_summary = "second"
    storage.save_day(day_log)

    assert storage.get_day(DAY).day_summary == "second"


def test_save_day_does_not_retry():
    store = FlakyStore(conflicts=1)
    storage = RemoteLogStorage(store)

    with pytest.raises(StorageError) as exc:
        storage.save_day(DayLog(date=DAY))
    assert exc.value.operation == "SaveDay"
    assert store.put_attempts == 1


def test_mutation_retries_after_conflict():
    """A conflicting write is retried against a fresh read."""
    store = FlakyStore(conflicts=2)
    storage = RemoteLogStorage(store, max_write_attempts=3)

    entry = create(storage)

    assert store.put_attempts == 3
    assert [e.id for e in storage.get_day(DAY).entries] == [entry.id]


def test_mutation_gives_up_after_max_attempts():
    store = FlakyStore(conflicts=5)
    storage = RemoteLogStorage(store, max_write_attempts=2)

    with pytest.raises(StorageError) as exc:
        create(storage)

    assert exc.value.operation == "CreateEntry"
    assert "2 attempts" in exc.value.message
    assert isinstance(exc.value.cause, VersionConflictError)
    assert store.put_attempts == 2


def test_concurrent_writers_both_land(store):
    """Two providers on one store do not lose each other's entries."""
    first = RemoteLogStorage(store)
    second = RemoteLogStorage(store)

    a = create(first, title="From first")
    b = create(second, title="From second")

    ids = [e.id for e in first.get_day(DAY).entries]
    assert ids == [a.id, b.id]


def test_store_failure_is_storage_error():
    storage = RemoteLogStorage(BrokenStore())

    with pytest.raises(StorageError) as exc:
        storage.get_day(DAY)
    assert exc.value.operation == "GetDay"

    with pytest.raises(StorageError) as exc:
        storage.health_check()
    assert exc.value.operation == "HealthCheck"


def test_corrupt_day_is_storage_error(storage, store):
    store.put(storage.day_path(DAY), b"{not json", None, "corrupt")

    with pytest.raises(StorageError) as exc:
        storage.get_day(DAY)
    assert "parse" in str(exc.value)


def test_save_summary(storage):
    create(storage, status=6)

    result = storage.generate_summary(SummaryRequest(summary_type="day", date=DAY))
    storage.save_summary(result, "day", DAY)

    assert storage.get_day(DAY).day_summary == \
        "Day had 1 activities with an average status of 6.0"


def test_save_summary_targets(storage, store):
    """Week and month summaries are accepted but not stored."""
    result = storage.generate_summary(SummaryRequest(summary_type="week", date=DAY))
    storage.save_summary(result, "week", DAY)
    assert store.list_objects("") == []

    with pytest.raises(ValidationError):
        storage.save_summary(result, "year", DAY)


def test_list_days(storage):
    for day in (date(2025, 9, 30), date(2025, 10, 1), date(2025, 10, 15)):
        create(storage, day=day)

    assert storage.list_days(date(2025, 9, 1), date(2025, 10, 10)) == [
        date(2025, 9, 30), date(2025, 10, 1)
    ]
    assert storage.list_days(date(2025, 10, 1), date(2025, 10, 31)) == [
        date(2025, 10, 1), date(2025, 10, 15)
    ]
    assert storage.list_days(date(2025, 11, 1), date(2025, 10, 1)) == []


def test_list_days_falls_back_when_listing_truncated():
    storage = RemoteLogStorage(TruncatingStore(), base_path="logs")
    for day in (date(2025, 9, 30), date(2025, 10, 1), date(2025, 10, 15)):
        create(storage, day=day)

    assert storage.list_days(date(2025, 9, 1), date(2025, 10, 10)) == [
        date(2025, 9, 30), date(2025, 10, 1)
    ]


def test_create_entry_reads_clock_once(storage):
    """An entry created at midnight is stored under the day of its own timestamp."""
    request = MidnightRequest(title="Late deploy")
    entry = storage.create_entry(request)

    assert request.reads == 1
    assert entry.timestamp == datetime(2025, 9, 29, 23, 59, 59)
    assert [e.id for e in storage.get_day(date(2025, 9, 29)).entries] == [entry.id]
    assert storage.get_day(date(2025, 9, 30)).is_empty


def test_backup_disabled_is_noop(storage, store):
    create(storage)
    storage.backup()
    assert len(store.list_objects("")) == 1


def test_backup_copies_day_objects(store):
    storage = RemoteLogStorage(store, backup_enabled=True, backup_path="backups")
    create(storage)
    create(storage, day=date(2025, 10, 1))

    storage.backup()

    backups = store.list_objects("backups")
    assert len(backups) == 2
    assert all(path.endswith(".json") for path in backups)
    assert backups[0].split("/", 2)[2] == "logs/2025/09/2025-09-29.json"


def test_health_check(storage):
    storage.health_check()


def test_invalid_attempt_count():
    with pytest.raises(ValidationError):
        RemoteLogStorage(InMemoryObjectStore(), max_write_attempts=0)

