"""Three-state gate deciding whether unspent funds roll into the next period."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from ..domain.balance import ZERO, parse_income, to_money
from ..errors import DecisionRequired, GateClosed, InvalidTransition


class RolloverDecision(Enum):
    UNDECIDED = "undecided"
    INCLUDE = "include"
    EXCLUDE = "exclude"


_TRANSITIONS: dict[tuple[RolloverDecision, str], RolloverDecision] = {
    (RolloverDecision.UNDECIDED, "include"): RolloverDecision.INCLUDE,
    (RolloverDecision.UNDECIDED, "exclude"): RolloverDecision.EXCLUDE,
    (RolloverDecision.INCLUDE, "change"): RolloverDecision.UNDECIDED,
    (RolloverDecision.EXCLUDE, "change"): RolloverDecision.UNDECIDED,
}


class RolloverGate:
    """Collects the rollover choice for one reset attempt.

    The choice is only required when there is a positive remaining balance.
    Once the reset built on this gate commits, the gate is closed for good.
    """

    def __init__(self, remaining_balance) -> None:
        self.remaining_balance: Decimal = max(ZERO, to_money(remaining_balance))
        self.state = RolloverDecision.UNDECIDED
        self.submitted = False

    def _apply(self, action: str) -> RolloverDecision:
        if self.submitted:
            raise GateClosed()
        try:
            self.state = _TRANSITIONS[(self.state, action)]
        except KeyError:
            raise InvalidTransition(
                f"Cannot {action} rollover while {self.state.value}"
            ) from None
        return self.state

    def include(self) -> RolloverDecision:
        return self._apply("include")

    def exclude(self) -> RolloverDecision:
        return self._apply("exclude")

    def change_choice(self) -> RolloverDecision:
        return self._apply("change")

    @property
    def required(self) -> bool:
        return self.remaining_balance > ZERO

    @property
    def can_submit(self) -> bool:
        return not self.submitted and not (
            self.required and self.state is RolloverDecision.UNDECIDED
        )

    @property
    def decision(self) -> RolloverDecision:
        """Decision to submit; a zero balance always resolves to EXCLUDE."""
        if not self.required:
            return RolloverDecision.EXCLUDE
        return self.state

    @property
    def rollover_amount(self) -> Decimal:
        if self.decision is RolloverDecision.INCLUDE:
            return self.remaining_balance
        return ZERO

    def total_available(self, new_income) -> Decimal:
        """New income plus any included rollover; bad income raises InvalidIncome."""
        return parse_income(new_income) + self.rollover_amount

    def ensure_ready(self) -> None:
        if self.submitted:
            raise GateClosed()
        if self.required and self.state is RolloverDecision.UNDECIDED:
            raise DecisionRequired()

    def mark_submitted(self) -> None:
        self.submitted = True
