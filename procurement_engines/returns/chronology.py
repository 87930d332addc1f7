"""
Payment-versus-return chronology heuristic.

Decides whether the buyer's payment already reflects the returned goods by
comparing the FIRST ``payment_made`` event with the LAST return event
(``partial_return`` or ``full_return``) on the purchase timeline.

This is an inference from event ordering, not a ledger: it does not link
individual payments to individual returns, so interleaved sequences of
several payments and several returns are only approximated.
"""

from __future__ import annotations

from collections.abc import Sequence

from procurement_kernel.domain.purchases import PurchaseEvent


def payment_made_after_returns(
    timeline: Sequence[PurchaseEvent] | None,
    has_returns: bool,
) -> bool:
    """
    True when the first payment strictly follows the last return.

    False when there is no timeline, nothing has been returned, or either
    event kind is missing.  Events with equal timestamps keep their
    recorded order.
    """
    if not timeline or not has_returns:
        return False

    ordered = sorted(timeline, key=lambda e: e.created_at)

    last_return = None
    for event in ordered:
        if event.is_return:
            last_return = event

    first_payment = next((e for e in ordered if e.is_payment), None)

    if last_return is None or first_payment is None:
        return False
    return first_payment.created_at > last_return.created_at
