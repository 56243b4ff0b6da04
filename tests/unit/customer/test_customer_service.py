"""Tests for customer validation and creation."""

from types import SimpleNamespace

import pytest

from ledgerdesk.core.modules.counter.service import CounterService
from ledgerdesk.core.modules.customer.models import ContactType, CustomerCreate, format_customer_id
from ledgerdesk.core.modules.customer.service import CustomerService, build_search_terms, validate_customer
from ledgerdesk.errors import TransientError, ValidationError


class TestValidateCustomer:
    """Tests for validate_customer."""

    def test_first_name_is_mandatory(self):
        with pytest.raises(ValidationError, match="First name is mandatory"):
            validate_customer(CustomerCreate(first_name="  ", email="a@b.co", phone="+911234"))

    def test_email_contact_requires_email(self):
        with pytest.raises(ValidationError, match="Email is required"):
            validate_customer(CustomerCreate(first_name="Asha", contact_type=ContactType.EMAIL, phone="+911234"))

    def test_phone_contact_requires_phone(self):
        with pytest.raises(ValidationError, match="Phone number is required"):
            validate_customer(CustomerCreate(first_name="Asha", contact_type=ContactType.PHONE, email="a@b.co"))

    def test_both_requires_email_and_phone(self):
        with pytest.raises(ValidationError, match="Both email and phone"):
            validate_customer(CustomerCreate(first_name="Asha", email="a@b.co"))

    def test_unused_contact_detail_is_dropped(self):
        result = validate_customer(
            CustomerCreate(first_name="Asha", contact_type=ContactType.PHONE, phone="+911234", email="a@b.co")
        )
        assert result.email == ""
        assert result.phone == "+911234"

    def test_values_are_trimmed_and_email_lowercased(self):
        result = validate_customer(
            CustomerCreate(first_name=" Asha ", last_name=" Rao ", email=" Asha@Example.COM ", phone=" +911234 ")
        )
        assert result.first_name == "Asha"
        assert result.last_name == "Rao"
        assert result.email == "asha@example.com"
        assert result.phone == "+911234"


class TestSearchTerms:
    def test_terms_are_lowercase_and_unique(self):
        data = CustomerCreate(first_name="Asha", last_name="Rao", email="asha@example.com", phone="+911234")
        assert build_search_terms("CT7", data) == ["ct7", "asha", "rao", "asha@example.com", "+911234", "asha rao"]

    def test_empty_values_are_skipped(self):
        data = CustomerCreate(first_name="Asha", contact_type=ContactType.PHONE, phone="+911234")
        assert build_search_terms("CT1", data) == ["ct1", "asha", "+911234"]


def test_format_customer_id():
    assert format_customer_id(1) == "CT1"
    assert format_customer_id(120) == "CT120"


class FailingCounter:
    async def get_next_id(self, counter_name):
        raise TransientError(f"Could not allocate an id from '{counter_name}'")


@pytest.mark.anyio
class TestCreateCustomer:
    """Tests for CustomerService.create_customer against an in-memory database."""

    @pytest.fixture
    def valid_data(self):
        return CustomerCreate(first_name="Asha", last_name="Rao", email="asha@example.com", phone="+911234")

    @pytest.fixture
    def service(self, database):
        counters = CounterService(database)
        customers = CustomerService(database)
        customers.set_core(SimpleNamespace(services=SimpleNamespace(counter=counters)))
        return customers

    async def test_ids_are_allocated_sequentially(self, service, valid_data, database):
        first = await service.create_customer(valid_data)
        second = await service.create_customer(valid_data)
        assert first.customer_id == "CT1"
        assert second.customer_id == "CT2"
        assert len(database.get_collection("customers").documents) == 2
        assert database.get_collection("counters").documents["customerCounter"]["value"] == 2

    async def test_invalid_customer_does_not_consume_an_id(self, service, database):
        with pytest.raises(ValidationError):
            await service.create_customer(CustomerCreate(first_name=""))
        assert database.get_collection("counters").documents == {}

    async def test_allocation_failure_saves_nothing(self, database, valid_data):
        customers = CustomerService(database)
        customers.set_core(SimpleNamespace(services=SimpleNamespace(counter=FailingCounter())))
        with pytest.raises(TransientError):
            await customers.create_customer(valid_data)
        assert database.get_collection("customers").documents == {}

    async def test_get_customer_round_trip(self, service, valid_data):
        created = await service.create_customer(valid_data)
        loaded = await service.get_customer("CT1")
        assert loaded.id == created.id
        assert loaded.full_name == "Asha Rao"
