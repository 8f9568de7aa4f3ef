from __future__ import annotations

from typing import Iterable, List

from ..domain.models import NormalizedTransaction
from ..logging import get_logger

LOG = get_logger("dedup")


def _cents(amount: float) -> int:
    return int(round(amount * 100))


def is_duplicate(a: NormalizedTransaction, b: NormalizedTransaction) -> bool:
    """Same date, same description, same amount in whole cents."""
    return (
        a.date == b.date
        and a.description == b.description
        and _cents(a.amount) == _cents(b.amount)
    )


def deduplicate_transactions(transactions: Iterable[NormalizedTransaction]) -> List[NormalizedTransaction]:
    """Drop later near-duplicates while keeping first-seen order.

    Custom-split entries are never dropped: several of them may share a
    date, description and amount on purpose.
    """
    kept: List[NormalizedTransaction] = []
    dropped = 0
    for tx in transactions:
        if not tx.is_custom_split and any(
            is_duplicate(seen, tx) for seen in kept if not seen.is_custom_split
        ):
            dropped += 1
            LOG.debug("Dropping duplicate: %s %r %.2f", tx.date, tx.description, tx.amount)
            continue
        kept.append(tx)
    if dropped:
        LOG.info("Removed %d duplicate transaction(s)", dropped)
    return kept
