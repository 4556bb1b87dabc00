"""
SQLAlchemy repositories.

One short session per call: each put/update/delete commits on its own, so
a merge interrupted halfway leaves every already-repointed record durable.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..database import CustomerRow, InvoiceRow, SubmissionRow, init_database
from ..errors import StorageError
from ..logger import get_logger
from ..models import Customer, Invoice, Submission
from .base import CustomerStore, InvoiceStore, Stores, SubmissionStore

logger = get_logger()


class _SqlRepository:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database session rolled back", error=str(e), table=self.__class__.__name__)
            raise StorageError(f"Database error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def _customer_from_row(row: CustomerRow) -> Customer:
    return Customer(
        id=row.customer_id,
        tenant_id=row.tenant_id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        address=row.address,
        city=row.city,
        state=row.state,
        zip=row.zip,
        notes=row.notes,
        submission_count=row.submission_count or 0,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_submission_at=row.last_submission_at,
        merged_from=list(row.merged_from or []),
    )


def _copy_customer(customer: Customer, row: CustomerRow) -> None:
    row.name = customer.name
    row.email = customer.email
    row.phone = customer.phone
    row.address = customer.address
    row.city = customer.city
    row.state = customer.state
    row.zip = customer.zip
    row.notes = customer.notes
    row.submission_count = customer.submission_count
    row.created_at = customer.created_at
    row.updated_at = customer.updated_at
    row.last_submission_at = customer.last_submission_at
    row.merged_from = list(customer.merged_from)


class SqlCustomerStore(_SqlRepository, CustomerStore):

    def list(self, tenant_id: str) -> List[Customer]:
        with self._session() as session:
            rows = session.scalars(
                select(CustomerRow).where(CustomerRow.tenant_id == tenant_id).order_by(CustomerRow.pk)
            ).all()
            return [_customer_from_row(row) for row in rows]

    def _row(self, session: Session, tenant_id: str, customer_id: str) -> Optional[CustomerRow]:
        return session.scalars(
            select(CustomerRow).where(
                CustomerRow.tenant_id == tenant_id,
                CustomerRow.customer_id == customer_id,
            )
        ).one_or_none()

    def get_by_id(self, tenant_id: str, customer_id: str) -> Optional[Customer]:
        with self._session() as session:
            row = self._row(session, tenant_id, customer_id)
            return _customer_from_row(row) if row is not None else None

    def put(self, customer: Customer) -> Customer:
        with self._session() as session:
            row = self._row(session, customer.tenant_id, customer.id)
            if row is None:
                row = CustomerRow(tenant_id=customer.tenant_id, customer_id=customer.id)
                session.add(row)
            _copy_customer(customer, row)
        return customer

    def delete(self, tenant_id: str, customer_id: str) -> bool:
        with self._session() as session:
            row = self._row(session, tenant_id, customer_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def owner_tenants(self, customer_id: str) -> List[str]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(CustomerRow.tenant_id).where(CustomerRow.customer_id == customer_id)
                ).all()
            )


def _submission_from_row(row: SubmissionRow) -> Submission:
    return Submission(
        id=row.submission_id,
        tenant_id=row.tenant_id,
        customer_id=row.customer_id,
        form_id=row.form_id,
        data=dict(row.data or {}),
        submitted_at=row.submitted_at,
    )


class SqlSubmissionStore(_SqlRepository, SubmissionStore):

    def _row(self, session: Session, tenant_id: str, submission_id: str) -> Optional[SubmissionRow]:
        return session.scalars(
            select(SubmissionRow).where(
                SubmissionRow.tenant_id == tenant_id,
                SubmissionRow.submission_id == submission_id,
            )
        ).one_or_none()

    def list_by_customer(self, tenant_id: str, customer_id: str) -> List[Submission]:
        with self._session() as session:
            rows = session.scalars(
                select(SubmissionRow)
                .where(SubmissionRow.tenant_id == tenant_id, SubmissionRow.customer_id == customer_id)
                .order_by(SubmissionRow.pk)
            ).all()
            return [_submission_from_row(row) for row in rows]

    def get_by_id(self, tenant_id: str, submission_id: str) -> Optional[Submission]:
        with self._session() as session:
            row = self._row(session, tenant_id, submission_id)
            return _submission_from_row(row) if row is not None else None

    def add(self, submission: Submission) -> Submission:
        with self._session() as session:
            session.add(
                SubmissionRow(
                    tenant_id=submission.tenant_id,
                    submission_id=submission.id,
                    customer_id=submission.customer_id,
                    form_id=submission.form_id,
                    data=dict(submission.data),
                    submitted_at=submission.submitted_at,
                )
            )
        return submission

    def update(self, submission: Submission) -> Submission:
        with self._session() as session:
            row = self._row(session, submission.tenant_id, submission.id)
            if row is None:
                raise StorageError(
                    f"submission {submission.id} does not exist",
                    details={"tenant_id": submission.tenant_id, "id": submission.id},
                )
            row.customer_id = submission.customer_id
            row.form_id = submission.form_id
            row.data = dict(submission.data)
            row.submitted_at = submission.submitted_at
        return submission


def _invoice_from_row(row: InvoiceRow) -> Invoice:
    return Invoice(
        id=row.invoice_id,
        tenant_id=row.tenant_id,
        customer_id=row.customer_id,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        customer_phone=row.customer_phone,
        data=dict(row.data or {}),
        updated_at=row.updated_at,
    )


class SqlInvoiceStore(_SqlRepository, InvoiceStore):

    def _row(self, session: Session, tenant_id: str, invoice_id: str) -> Optional[InvoiceRow]:
        return session.scalars(
            select(InvoiceRow).where(
                InvoiceRow.tenant_id == tenant_id,
                InvoiceRow.invoice_id == invoice_id,
            )
        ).one_or_none()

    def list_by_customer(self, tenant_id: str, customer_id: str) -> List[Invoice]:
        with self._session() as session:
            rows = session.scalars(
                select(InvoiceRow)
                .where(InvoiceRow.tenant_id == tenant_id, InvoiceRow.customer_id == customer_id)
                .order_by(InvoiceRow.pk)
            ).all()
            return [_invoice_from_row(row) for row in rows]

    def get_by_id(self, tenant_id: str, invoice_id: str) -> Optional[Invoice]:
        with self._session() as session:
            row = self._row(session, tenant_id, invoice_id)
            return _invoice_from_row(row) if row is not None else None

    def add(self, invoice: Invoice) -> Invoice:
        with self._session() as session:
            row = InvoiceRow(tenant_id=invoice.tenant_id, invoice_id=invoice.id)
            _copy_invoice(invoice, row)
            session.add(row)
        return invoice

    def update(self, invoice: Invoice) -> Invoice:
        with self._session() as session:
            row = self._row(session, invoice.tenant_id, invoice.id)
            if row is None:
                raise StorageError(
                    f"invoice {invoice.id} does not exist",
                    details={"tenant_id": invoice.tenant_id, "id": invoice.id},
                )
            _copy_invoice(invoice, row)
        return invoice


def _copy_invoice(invoice: Invoice, row: InvoiceRow) -> None:
    row.customer_id = invoice.customer_id
    row.customer_name = invoice.customer_name
    row.customer_email = invoice.customer_email
    row.customer_phone = invoice.customer_phone
    row.data = dict(invoice.data)
    row.updated_at = invoice.updated_at


def sql_stores(target: Union[str, Path, Engine]) -> Stores:
    engine = target if isinstance(target, Engine) else init_database(target)
    return Stores(
        customers=SqlCustomerStore(engine),
        submissions=SqlSubmissionStore(engine),
        invoices=SqlInvoiceStore(engine),
    )
