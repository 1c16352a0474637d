"""Tests for run_in_transaction retry and rollback behavior"""

import inspect
import threading

import pytest
from fastapi.routing import APIRoute
from sqlalchemy.exc import OperationalError

from fest_registry.errors import EventFull, StoreUnavailable
from fest_registry.main import app
from fest_registry.models.event import Event
from fest_registry.services import payment_service as payment_service_module
from fest_registry.services import transactions
from fest_registry.services.transactions import run_in_transaction


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(transactions.time, "sleep", lambda _: None)


def _conflict():
    return OperationalError("UPDATE events", {}, Exception("database is locked"))


def test_retries_conflicts_then_commits(_db_session, make_event):
    event = make_event()
    attempts = []

    def _rename(db):
        attempts.append(1)
        if len(attempts) < 3:
            raise _conflict()
        row = db.get(Event, event.id, populate_existing=True)
        row.title = "Renamed"
        db.add(row)
        return row.title

    assert run_in_transaction(_db_session, _rename) == "Renamed"
    assert len(attempts) == 3
    assert _db_session.get(Event, event.id, populate_existing=True).title == "Renamed"


def test_gives_up_with_store_unavailable(_db_session):
    attempts = []

    def _always_locked(db):
        attempts.append(1)
        raise _conflict()

    with pytest.raises(StoreUnavailable) as exc_info:
        run_in_transaction(_db_session, _always_locked, max_attempts=2)

    assert len(attempts) == 2
    assert exc_info.value.retryable


def test_domain_errors_roll_back_and_are_not_retried(_db_session, make_event):
    event = make_event()
    attempts = []

    def _rename_then_reject(db):
        attempts.append(1)
        row = db.get(Event, event.id, populate_existing=True)
        row.title = "Should not stick"
        db.add(row)
        db.flush()
        raise EventFull(event.id)

    with pytest.raises(EventFull):
        run_in_transaction(_db_session, _rename_then_reject)

    assert len(attempts) == 1
    assert _db_session.get(Event, event.id, populate_existing=True).title == (
        "Code Sprint"
    )


def test_only_gateway_routes_run_on_the_event_loop():
    on_loop = {
        route.path
        for route in app.routes
        if isinstance(route, APIRoute) and inspect.iscoroutinefunction(route.endpoint)
    }

    assert on_loop == {"/health", "/payments/create-order", "/payments/checkout"}


async def test_checkout_transactions_run_off_the_event_loop(
    monkeypatch, payment_service, make_event, registration_service, contact
):
    event = make_event(is_paid=True)
    registration = registration_service.register(event.id, "user-a", contact())
    loop_thread = threading.get_ident()
    threads = []

    def _recording(session, fn, max_attempts=None):
        threads.append(threading.get_ident())
        return run_in_transaction(session, fn, max_attempts)

    monkeypatch.setattr(payment_service_module, "run_in_transaction", _recording)

    await payment_service.start_checkout(registration.id, "user-a")

    # create_payment and the order id write
    assert len(threads) == 2
    assert loop_thread not in threads
