"""
Tests for the repository contract, run against every backend.
"""

from datetime import datetime

import pytest

from contactlink.errors import StorageError

from conftest import make_customer, make_invoice, make_submission


class TestCustomerStore:
    """Test tenant-scoped customer CRUD."""

    def test_put_and_get(self, stores):
        customer = make_customer("1", name="Jane", email="j@x.com", submission_count=2)
        stores.customers.put(customer)

        assert stores.customers.get_by_id("T", "1") == customer

    def test_get_is_tenant_scoped(self, stores):
        """A customer is invisible from any other tenant."""
        stores.customers.put(make_customer("1"))

        assert stores.customers.get_by_id("OTHER", "1") is None
        assert stores.customers.list("OTHER") == []

    def test_put_replaces(self, stores):
        stores.customers.put(make_customer("1", name="Jane"))
        stores.customers.put(make_customer("1", name="Jane Doe", phone="555"))

        customers = stores.customers.list("T")
        assert len(customers) == 1
        assert customers[0].name == "Jane Doe"
        assert customers[0].phone == "555"

    def test_list_is_oldest_first(self, stores):
        for customer_id in ("a", "b", "c"):
            stores.customers.put(make_customer(customer_id))
        stores.customers.put(make_customer("a", name="renamed"))

        assert [c.id for c in stores.customers.list("T")] == ["a", "b", "c"]

    def test_delete(self, stores):
        stores.customers.put(make_customer("1"))

        assert stores.customers.delete("T", "1") is True
        assert stores.customers.get_by_id("T", "1") is None
        assert stores.customers.delete("T", "1") is False

    def test_owner_tenants(self, stores):
        stores.customers.put(make_customer("1", tenant_id="A"))
        stores.customers.put(make_customer("1", tenant_id="B"))

        assert sorted(stores.customers.owner_tenants("1")) == ["A", "B"]
        assert stores.customers.owner_tenants("2") == []

    def test_datetimes_round_trip(self, stores):
        stores.customers.put(make_customer("1", last_submission_at=datetime(2024, 2, 3, 4, 5, 6)))

        customer = stores.customers.get_by_id("T", "1")

        assert customer.created_at == datetime(2024, 1, 1, 12, 0, 0)
        assert customer.last_submission_at == datetime(2024, 2, 3, 4, 5, 6)


class TestDependentStores:
    """Test submission and invoice stores."""

    def test_list_by_customer(self, stores):
        stores.submissions.add(make_submission("s1", "1"))
        stores.submissions.add(make_submission("s2", "2"))
        stores.submissions.add(make_submission("s3", "1"))
        stores.submissions.add(make_submission("s4", "1", tenant_id="OTHER"))

        assert [s.id for s in stores.submissions.list_by_customer("T", "1")] == ["s1", "s3"]

    def test_add_duplicate_raises(self, stores):
        stores.submissions.add(make_submission("s1", "1"))

        with pytest.raises(StorageError):
            stores.submissions.add(make_submission("s1", "2"))

    def test_update_repoints(self, stores):
        stores.invoices.add(make_invoice("i1", "1", customer_name="Jane"))
        invoice = stores.invoices.get_by_id("T", "i1")
        invoice.customer_id = "2"
        invoice.customer_email = "j@x.com"

        stores.invoices.update(invoice)

        stored = stores.invoices.get_by_id("T", "i1")
        assert stored.customer_id == "2"
        assert stored.customer_name == "Jane"
        assert stored.customer_email == "j@x.com"
        assert stores.invoices.list_by_customer("T", "1") == []

    def test_update_missing_raises(self, stores):
        with pytest.raises(StorageError):
            stores.submissions.update(make_submission("nope", "1"))

    def test_submission_data_round_trips(self, stores):
        submission = make_submission("s1", "1")
        submission.data = {"f1": "Jane", "f8": 3, "f9": {"street": "12 Oak"}}
        stores.submissions.add(submission)

        assert stores.submissions.get_by_id("T", "s1").data == submission.data
