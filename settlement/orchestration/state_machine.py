"""Canonical state transition helpers for invoices."""

from __future__ import annotations

from settlement.core.enums import InvoiceStatus
from settlement.core.exceptions import InvalidTransitionError


class StateMachine:
    """Transition table keyed by current state."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")

    def is_terminal(self, state: str) -> bool:
        return not self._transitions.get(state)


INVOICE_STATE_MACHINE = StateMachine(
    {
        InvoiceStatus.DRAFT.value: {InvoiceStatus.ISSUED.value},
        InvoiceStatus.ISSUED.value: {InvoiceStatus.PAID.value},
        InvoiceStatus.PAID.value: set(),
    }
)
