"""Tests for the reset flow controller and its notifications."""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from budgetcycle.errors import DataUnavailable, ResubmissionBlocked, TransactionFailed
from budgetcycle.infra.repositories import SQLModelPeriodRepository
from budgetcycle.services.balance import BalanceCalculator
from budgetcycle.services.controller import ResetController
from budgetcycle.services.notifications import (
    RESET_FAILURE,
    RESET_INVALIDATION_KEYS,
    RESET_SUCCESS,
)
from budgetcycle.services.reset import ResetTransaction
from budgetcycle.services.rollover_gate import RolloverDecision


@pytest.fixture
def controller_factory(calculator, reset_transaction, notifier):
    def _build(period_id: int, *, transaction=None, calc=None) -> ResetController:
        return ResetController(
            period_id=period_id,
            calculator=calc or calculator,
            transaction=transaction or reset_transaction,
            notifier=notifier,
        )

    return _build


def test_open_exposes_balance_count_and_undecided_gate(period_factory, controller_factory):
    period = period_factory(allocations=["50000"], expenses=["32500"])
    controller = controller_factory(period.id)

    gate = controller.open()

    assert controller.remaining_balance == Decimal("17500")
    assert controller.expense_count == 1
    assert gate.state is RolloverDecision.UNDECIDED
    assert gate.required
    assert controller.archive_notice.startswith("This will archive 1 current expense and")


def test_submit_without_choice_sets_inline_error(period_factory, controller_factory, notifier):
    period = period_factory(allocations=["50000"], expenses=["32500"])
    controller = controller_factory(period.id)
    controller.open()

    assert controller.submit("60000") is None

    assert controller.validation_error == "Please choose whether to include remaining balance"
    assert notifier.invalidated == []
    assert notifier.notifications == []
    assert controller.pending is False


def test_submit_with_bad_income_sets_inline_error(period_factory, controller_factory, notifier):
    period = period_factory(allocations=["100"])
    controller = controller_factory(period.id)
    controller.open().include()

    assert controller.submit("not a number") is None

    assert controller.validation_error == "Please enter a valid income amount"
    assert notifier.notifications == []


def test_successful_submit_invalidates_every_key_once(
    period_factory, controller_factory, notifier, period_repo
):
    period = period_factory(allocations=["50000"], expenses=["32500"])
    controller = controller_factory(period.id)
    controller.open().include()
    assert controller.total_available("60000") == Decimal("77500")
    assert controller.total_available("sixty") == Decimal("17500")

    outcome = controller.submit("60000")

    assert outcome is not None
    assert period_repo.get_period(outcome.new_period_id).income == Decimal("77500")
    assert sorted(notifier.invalidated) == sorted(RESET_INVALIDATION_KEYS)
    assert notifier.notifications == [RESET_SUCCESS]
    assert controller.validation_error == ""


def test_zero_balance_submits_without_a_choice(period_factory, controller_factory, notifier):
    period = period_factory(allocations=["10000"], expenses=["15000"])
    controller = controller_factory(period.id)
    gate = controller.open()

    assert gate.required is False
    outcome = controller.submit("40000")

    assert outcome.new_income == Decimal("40000")
    assert notifier.notifications == [RESET_SUCCESS]


def test_resubmission_after_success_is_blocked(period_factory, controller_factory):
    period = period_factory()
    controller = controller_factory(period.id)
    controller.open()
    controller.submit("1000")

    with pytest.raises(ResubmissionBlocked):
        controller.submit("1000")


def test_resubmission_while_pending_is_blocked(period_factory, controller_factory):
    period = period_factory()
    entered = threading.Event()
    release = threading.Event()

    class _SlowTransaction:
        def execute(self, *args, **kwargs):
            entered.set()
            release.wait(timeout=5)
            raise TransactionFailed()

    controller = controller_factory(period.id, transaction=_SlowTransaction())
    controller.open()
    worker = threading.Thread(target=controller.submit, args=("1000",))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert controller.pending is True
        with pytest.raises(ResubmissionBlocked):
            controller.submit("1000")
    finally:
        release.set()
        worker.join(timeout=5)

    assert controller.pending is False


def test_commit_failure_notifies_without_invalidating(
    period_factory, controller_factory, notifier, failing_commit_factory, period_snapshot
):
    period = period_factory(allocations=["50000"], expenses=["32500"])
    before = period_snapshot(period.id)
    failing = ResetTransaction(SQLModelPeriodRepository(failing_commit_factory))
    controller = controller_factory(period.id, transaction=failing)
    controller.open().exclude()

    assert controller.submit("60000") is None

    assert notifier.notifications == [RESET_FAILURE]
    assert notifier.invalidated == []
    assert period_snapshot(period.id) == before

    # The gate stays open so the user can retry.
    assert controller.gate.can_submit


def test_balance_appearing_after_open_reloads_the_gate(
    period_factory, controller_factory, period_repo
):
    period = period_factory(allocations=["500"], expenses=["500"])
    controller = controller_factory(period.id)
    assert controller.open().required is False

    category = period_repo.get_or_create_category(period.budget_id, "General")
    period_repo.add_allocation(period.id, category.id, "300")

    assert controller.submit("1000") is None
    assert controller.validation_error == "Please choose whether to include remaining balance"
    assert controller.remaining_balance == Decimal("300")
    assert controller.gate.required


def test_open_failure_keeps_reset_unavailable(period_factory, controller_factory):
    period = period_factory()

    class _BrokenSource:
        def get_period(self, period_id):
            return period

        def get_allocations(self, period_id):
            raise OSError("storage offline")

        def get_expenses(self, period_id):
            return []

    controller = controller_factory(period.id, calc=BalanceCalculator(_BrokenSource()))

    with pytest.raises(DataUnavailable):
        controller.open()
    assert controller.loaded is False
    with pytest.raises(DataUnavailable):
        controller.submit("1000")


def test_open_on_missing_period_offers_no_reset(controller_factory, notifier):
    controller = controller_factory(9999)

    with pytest.raises(DataUnavailable):
        controller.open()

    assert controller.loaded is False
    assert controller.gate is None
    assert notifier.notifications == []
