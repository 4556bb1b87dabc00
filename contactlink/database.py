"""
Database schema and connection management.

Uses SQLAlchemy; SQLite by default, any SQLAlchemy URL works.
"""

from datetime import datetime
from pathlib import Path
from typing import Union

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class CustomerRow(Base):
    """Customer record, unique per (tenant_id, customer_id)."""

    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("tenant_id", "customer_id", name="uq_customer_tenant"),)

    pk = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String, nullable=False, index=True)
    customer_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String)
    phone = Column(String)
    address = Column(String)
    city = Column(String)
    state = Column(String)
    zip = Column(String)
    notes = Column(Text)
    submission_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)
    last_submission_at = Column(DateTime)
    merged_from = Column(JSON, nullable=False, default=list)


class SubmissionRow(Base):
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("tenant_id", "submission_id", name="uq_submission_tenant"),)

    pk = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String, nullable=False, index=True)
    submission_id = Column(String, nullable=False)
    customer_id = Column(String, index=True)
    form_id = Column(String)
    data = Column(JSON, nullable=False, default=dict)
    submitted_at = Column(DateTime, nullable=False, default=datetime.now)


class InvoiceRow(Base):
    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("tenant_id", "invoice_id", name="uq_invoice_tenant"),)

    pk = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String, nullable=False, index=True)
    invoice_id = Column(String, nullable=False)
    customer_id = Column(String, index=True)
    customer_name = Column(String)
    customer_email = Column(String)
    customer_phone = Column(String)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)


def database_url(target: Union[str, Path]) -> str:
    """Accept either a SQLAlchemy URL or a path to an SQLite file."""
    if isinstance(target, str) and "://" in target:
        return target
    return f"sqlite:///{Path(target)}"


def create_db_engine(target: Union[str, Path]) -> Engine:
    url = database_url(target)
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite:///"):
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def init_database(target: Union[str, Path]) -> Engine:
    """
    Initialize database and create tables.

    Args:
        target: SQLAlchemy URL or path to SQLite database file

    Returns:
        Engine bound to the initialized database
    """
    engine = create_db_engine(target)
    Base.metadata.create_all(engine)
    return engine

