"""Unit tests for FileConsentStore and InMemoryConsentStore."""

import json

import pytest

from consentgate.adapters.consent_store.file import FileConsentStore
from consentgate.adapters.consent_store.in_memory import InMemoryConsentStore
from consentgate.core.exceptions import ConsentStoreError
from consentgate.core.protocols import ConsentStore

KEY = "consentgate.consent.v1"


class TestFileConsentStore:
    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(FileConsentStore(tmp_path / "consent.json"), ConsentStore)

    def test_missing_file_reads_empty(self, tmp_path):
        store = FileConsentStore(tmp_path / "missing.json")
        assert store.get(KEY) is None

    def test_set_then_get(self, tmp_path):
        store = FileConsentStore(tmp_path / "consent.json")

        store.set(KEY, '{"analyticsGranted": true}')

        assert store.get(KEY) == '{"analyticsGranted": true}'

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "consent.json"

        FileConsentStore(path).set(KEY, "v")

        assert path.exists()

    def test_other_keys_preserved(self, tmp_path):
        path = tmp_path / "consent.json"
        path.write_text(json.dumps({"other": "keep"}))
        store = FileConsentStore(path)

        store.set(KEY, "v")

        assert json.loads(path.read_text()) == {"other": "keep", KEY: "v"}

    def test_overwrite_replaces_value(self, tmp_path):
        store = FileConsentStore(tmp_path / "consent.json")

        store.set(KEY, "first")
        store.set(KEY, "second")

        assert store.get(KEY) == "second"

    def test_no_temp_files_left_behind(self, tmp_path):
        store = FileConsentStore(tmp_path / "consent.json")

        store.set(KEY, "v")

        assert [p.name for p in tmp_path.iterdir()] == ["consent.json"]

    def test_survives_new_instance(self, tmp_path):
        FileConsentStore(tmp_path / "consent.json").set(KEY, "v")
        assert FileConsentStore(tmp_path / "consent.json").get(KEY) == "v"

    def test_inline_object_value_returned_as_json(self, tmp_path):
        path = tmp_path / "consent.json"
        path.write_text(json.dumps({KEY: {"analyticsGranted": False}}))

        assert json.loads(FileConsentStore(path).get(KEY)) == {"analyticsGranted": False}

    def test_empty_file_reads_empty(self, tmp_path):
        path = tmp_path / "consent.json"
        path.write_text("   ")

        assert FileConsentStore(path).get(KEY) is None

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '"string"'])
    def test_corrupt_file_raises_store_error(self, tmp_path, content):
        path = tmp_path / "consent.json"
        path.write_text(content)

        with pytest.raises(ConsentStoreError) as exc_info:
            FileConsentStore(path).get(KEY)
        assert exc_info.value.key == KEY

    def test_non_utf8_file_raises_store_error(self, tmp_path):
        path = tmp_path / "consent.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        store = FileConsentStore(path)

        with pytest.raises(ConsentStoreError):
            store.get(KEY)
        with pytest.raises(ConsentStoreError):
            store.set(KEY, "v")

    def test_unwritable_location_raises_store_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(ConsentStoreError):
            FileConsentStore(blocker / "consent.json").set(KEY, "v")


class TestInMemoryConsentStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryConsentStore(), ConsentStore)

    def test_initial_values(self):
        store = InMemoryConsentStore({KEY: "v"})
        assert store.get(KEY) == "v"

    def test_write_log(self):
        store = InMemoryConsentStore()

        store.set(KEY, "a")
        store.set(KEY, "b")

        assert store.writes == [(KEY, "a"), (KEY, "b")]
        assert store.get(KEY) == "b"

    def test_injected_failures(self):
        store = InMemoryConsentStore()
        store.fail_reads = True
        store.fail_writes = True

        with pytest.raises(ConsentStoreError):
            store.get(KEY)
        with pytest.raises(ConsentStoreError):
            store.set(KEY, "v")
        assert store.writes == []
