"""
Tests for database.py - engine setup and table creation.
"""

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contactlink.database import CustomerRow, database_url, init_database


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        engine = init_database(tmp_path / "test.db")

        tables = set(inspect(engine).get_table_names())

        assert {"customers", "submissions", "invoices"} <= tables

    def test_database_url(self, tmp_path):
        assert database_url("postgresql://db/contacts") == "postgresql://db/contacts"
        assert database_url(tmp_path / "x.db") == f"sqlite:///{tmp_path / 'x.db'}"


class TestCustomerRow:
    """Test table constraints."""

    def test_customer_id_unique_per_tenant(self, tmp_path):
        engine = init_database(tmp_path / "test.db")
        session = Session(engine)
        session.add(CustomerRow(tenant_id="T", customer_id="1", name="A"))
        session.add(CustomerRow(tenant_id="OTHER", customer_id="1", name="B"))
        session.commit()

        session.add(CustomerRow(tenant_id="T", customer_id="1", name="C"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()
        session.close()
