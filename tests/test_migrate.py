"""
Tests for scripts/migrate_json_to_db.py.
"""

import importlib.util
from pathlib import Path

import pytest

from contactlink.repositories.json_store import json_stores
from contactlink.repositories.sql_store import sql_stores

from conftest import make_customer, make_invoice, make_submission

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "migrate_json_to_db.py"


@pytest.fixture(scope="module")
def migrate():
    spec = importlib.util.spec_from_file_location("migrate_json_to_db", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.migrate


@pytest.fixture
def data_dir(tmp_path):
    stores = json_stores(tmp_path / "data")
    stores.customers.put(make_customer("1", name="Jane", merged_from=["0"]))
    stores.customers.put(make_customer("2", tenant_id="U"))
    stores.submissions.add(make_submission("s1", "1"))
    stores.invoices.add(make_invoice("i1", "1", customer_name="Jane"))
    return tmp_path / "data"


class TestMigrate:

    def test_copies_every_collection(self, migrate, data_dir, tmp_path):
        db = tmp_path / "contactlink.db"

        assert migrate(data_dir, str(db)) is True

        stores = sql_stores(db)
        assert stores.customers.get_by_id("T", "1").merged_from == ["0"]
        assert stores.customers.get_by_id("U", "2") is not None
        assert stores.submissions.get_by_id("T", "s1").customer_id == "1"
        assert stores.invoices.get_by_id("T", "i1").customer_name == "Jane"

    def test_rerun_skips_existing(self, migrate, data_dir, tmp_path, capsys):
        db = tmp_path / "contactlink.db"
        migrate(data_dir, str(db))
        capsys.readouterr()

        assert migrate(data_dir, str(db)) is True

        assert "Migrated: 0  Skipped: 2  Errors: 0" in capsys.readouterr().out
        assert len(sql_stores(db).customers.list("T")) == 1

    def test_dry_run_writes_nothing(self, migrate, data_dir, tmp_path):
        db = tmp_path / "contactlink.db"

        assert migrate(data_dir, str(db), dry_run=True) is True

        assert not db.exists()
