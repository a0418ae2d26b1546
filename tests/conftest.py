"""Shared fixtures: an in-memory store with one user per role."""

from datetime import date
from decimal import Decimal

import pytest

from finvue.config import AppSettings
from finvue.ledger import RecordStore
from finvue.models import (
    PaymentSource,
    Session,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserDraft,
    UserRole,
)
from finvue.services.storage import InMemoryStateStorage


@pytest.fixture
def settings():
    return AppSettings(_env_file=None)


@pytest.fixture
def storage():
    return InMemoryStateStorage()


@pytest.fixture
def store(settings, storage):
    store = RecordStore(storage=storage, settings=settings)
    store.add_user(UserDraft(username="maya", password="pw", role=UserRole.MANAGER))
    store.add_user(UserDraft(username="eli", password="pw", role=UserRole.EMPLOYEE))
    store.add_user(UserDraft(username="bea", password="pw", role=UserRole.BILLING_EXECUTIVE))
    return store


def _session(store: RecordStore, username: str) -> Session:
    return Session.for_user(store.state.find_user_by_username(username))


@pytest.fixture
def admin(store):
    return _session(store, "admin")


@pytest.fixture
def manager(store):
    return _session(store, "maya")


@pytest.fixture
def employee(store):
    return _session(store, "eli")


@pytest.fixture
def billing(store):
    return _session(store, "bea")


@pytest.fixture
def make_transaction():
    """Build a Transaction directly, bypassing the store."""

    def _make(
        amount="100.00",
        type=TransactionType.EXPENSE,
        category="Rent",
        status=TransactionStatus.APPROVED,
        source=PaymentSource.CASH,
        user_id="u1",
        created_by="alice",
        on=date(2026, 3, 1),
        note="",
        **extra,
    ) -> Transaction:
        return Transaction(
            amount=Decimal(amount),
            type=type,
            category=category,
            status=status,
            source=source,
            user_id=user_id,
            created_by=created_by,
            date=on,
            note=note,
            **extra,
        )

    return _make
