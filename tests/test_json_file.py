import json

import pytest

from db.json_file import JsonFileStorage, StorageFault


def test_read_missing_file_returns_none(tmp_path):
    assert JsonFileStorage(tmp_path / "nope.json").read() is None


def test_write_then_read(tmp_path):
    storage = JsonFileStorage(tmp_path / "nested" / "users.json")
    records = [{"id": 1, "username": "Zoë"}]

    storage.write(records)

    assert storage.read() == records
    text = storage.path.read_text(encoding="utf-8")
    assert "Zoë" in text
    assert text.startswith("[\n  {")


def test_write_replaces_previous_contents(tmp_path):
    storage = JsonFileStorage(tmp_path / "employees.json")
    storage.write([{"id": 1, "email": "a@x.com"}, {"id": 2, "email": "b@x.com"}])
    storage.write([{"id": 2, "email": "b@x.com"}])

    assert json.loads(storage.path.read_text(encoding="utf-8")) == [{"id": 2, "email": "b@x.com"}]
    assert [p.name for p in tmp_path.iterdir()] == ["employees.json"]


def test_read_invalid_json_is_a_fault(tmp_path):
    path = tmp_path / "employees.json"
    path.write_text("[{not json", encoding="utf-8")

    with pytest.raises(StorageFault) as excinfo:
        JsonFileStorage(path).read()
    assert excinfo.value.path == path


def test_read_empty_file_is_a_fault(tmp_path):
    path = tmp_path / "employees.json"
    path.write_text("", encoding="utf-8")

    with pytest.raises(StorageFault):
        JsonFileStorage(path).read()


def test_read_non_array_is_a_fault(tmp_path):
    path = tmp_path / "employees.json"
    path.write_text('{"id": 1}', encoding="utf-8")

    with pytest.raises(StorageFault):
        JsonFileStorage(path).read()


def test_unserializable_records_are_a_fault(tmp_path):
    storage = JsonFileStorage(tmp_path / "employees.json")

    with pytest.raises(StorageFault):
        storage.write([{"id": 1, "email": object()}])
    assert not storage.path.exists()


def test_write_into_unwritable_location_is_a_fault(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")

    with pytest.raises(StorageFault):
        JsonFileStorage(blocker / "employees.json").write([])
