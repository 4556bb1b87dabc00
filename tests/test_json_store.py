"""
Tests for the flat-file JSON repositories.
"""

import json

import pytest

from contactlink.errors import StorageError
from contactlink.repositories.json_store import json_stores, load_store, save_store

from conftest import make_customer, make_invoice, make_submission


class TestLoadSave:
    """Test reading and writing store files."""

    def test_missing_file_is_empty(self, tmp_path):
        """A store that was never written holds no records."""
        assert load_store(tmp_path / "nope.json", "customers") == {"customers": {}}

    def test_blank_file_is_empty(self, tmp_path):
        path = tmp_path / "customers.json"
        path.write_text("   \n", encoding="utf-8")
        assert load_store(path, "customers") == {"customers": {}}

    def test_corrupt_file_raises(self, tmp_path):
        """Corrupt data must not be mistaken for an empty store."""
        path = tmp_path / "customers.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            load_store(path, "customers")

    def test_non_object_top_level_raises(self, tmp_path):
        path = tmp_path / "customers.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageError):
            load_store(path, "customers")

    def test_save_creates_parent_and_leaves_no_tmp(self, tmp_path):
        path = tmp_path / "nested" / "customers.json"

        save_store(path, {"customers": {"T": {}}})

        assert json.loads(path.read_text(encoding="utf-8")) == {"customers": {"T": {}}}
        assert not (tmp_path / "nested" / "customers.json.tmp").exists()


class TestJsonCustomerStore:
    """Test customer persistence in JSON files."""

    @pytest.fixture
    def stores(self, tmp_path):
        return json_stores(tmp_path / "data")

    def test_put_writes_tenant_keyed_file(self, stores, tmp_path):
        stores.customers.put(make_customer("1", name="Jane"))

        raw = json.loads((tmp_path / "data" / "customers.json").read_text(encoding="utf-8"))
        assert raw["customers"]["T"]["1"]["name"] == "Jane"
        assert raw["customers"]["T"]["1"]["created_at"] == "2024-01-01T12:00:00"

    def test_records_survive_new_store_instance(self, stores, tmp_path):
        """Every call re-reads the file."""
        stores.customers.put(make_customer("1", name="Jane", merged_from=["0"]))

        reopened = json_stores(tmp_path / "data")

        assert reopened.customers.get_by_id("T", "1") == stores.customers.get_by_id("T", "1")
        assert reopened.customers.get_by_id("T", "1").merged_from == ["0"]

    def test_delete_drops_empty_tenant(self, stores, tmp_path):
        stores.customers.put(make_customer("1"))

        assert stores.customers.delete("T", "1") is True
        assert stores.customers.delete("T", "1") is False

        raw = json.loads((tmp_path / "data" / "customers.json").read_text(encoding="utf-8"))
        assert raw == {"customers": {}}

    def test_dependent_file_is_separate(self, stores, tmp_path):
        stores.submissions.add(make_submission("s1", "1"))
        stores.invoices.add(make_invoice("i1", "1"))

        assert (tmp_path / "data" / "submissions.json").exists()
        assert (tmp_path / "data" / "invoices.json").exists()
        assert not (tmp_path / "data" / "customers.json").exists()
