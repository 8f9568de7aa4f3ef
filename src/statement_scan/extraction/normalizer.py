from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain.categories import map_category
from ..domain.models import SPLIT_CUSTOM, SPLIT_EQUAL, SPLIT_TYPES, NormalizedTransaction, SplitItem
from ..domain.normalize import normalize_amount, normalize_date, normalize_tx_type
from ..logging import get_logger
from .dedup import deduplicate_transactions
from .response import EXPECT_ARRAY, extract_json_payload

LOG = get_logger("normalizer")


@dataclass(frozen=True)
class SplitContext:
    """Known ledger members; enables the payer/involved/splitType fields."""

    members: Tuple[str, ...]

    @classmethod
    def from_members(cls, members: Optional[Iterable[Any]]) -> Optional["SplitContext"]:
        if not members or isinstance(members, (str, bytes)):
            return None
        cleaned: List[str] = []
        for m in members:
            if isinstance(m, str) and m.strip() and m.strip() not in cleaned:
                cleaned.append(m.strip())
        return cls(tuple(cleaned)) if cleaned else None

    def pick_payer(self, value: Any) -> str:
        if isinstance(value, str) and value.strip() in self.members:
            return value.strip()
        return self.members[0]

    def pick_involved(self, value: Any) -> Tuple[str, ...]:
        if isinstance(value, (list, tuple)):
            picked = tuple(
                v.strip() for v in value if isinstance(v, str) and v.strip() in self.members
            )
            if picked:
                return tuple(dict.fromkeys(picked))
        return self.members


class TransactionNormalizer:
    """Turn parsed model JSON into validated, deduplicated transactions."""

    def __init__(self, members: Optional[Iterable[Any]] = None, *, today: Optional[date] = None) -> None:
        self.split = SplitContext.from_members(members)
        self.today = today

    def normalize_text(self, text: Optional[str], *, expect: str = EXPECT_ARRAY) -> List[NormalizedTransaction]:
        parsed = extract_json_payload(text, expect=expect)
        if parsed is None:
            return []
        return self.normalize(parsed)

    def normalize(self, parsed: Any) -> List[NormalizedTransaction]:
        candidates = self.coerce_candidates(parsed)
        normalized: List[NormalizedTransaction] = []
        for idx, candidate in enumerate(candidates, 1):
            tx = self.normalize_candidate(candidate)
            if tx is None:
                if LOG.isEnabledFor(logging.DEBUG):
                    LOG.debug("Dropped candidate %02d: %r", idx, candidate)
                continue
            normalized.append(tx)
        dropped = len(candidates) - len(normalized)
        if dropped:
            LOG.info("Dropped %d malformed candidate(s) of %d", dropped, len(candidates))
        return deduplicate_transactions(normalized)

    @staticmethod
    def coerce_candidates(parsed: Any) -> List[Any]:
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, Mapping):
            inner = parsed.get("transactions")
            if isinstance(inner, list):
                return inner
            return [parsed]
        return []

    def normalize_candidate(self, candidate: Any) -> Optional[NormalizedTransaction]:
        if not isinstance(candidate, Mapping):
            return None
        description = self._text(candidate.get("description"))
        if not description:
            return None
        amount = normalize_amount(candidate.get("amount"))
        if amount is None:
            return None

        raw_category = candidate.get("category")
        tx_type = candidate.get("type", candidate.get("txType"))
        tx = NormalizedTransaction(
            date=normalize_date(candidate.get("date"), today=self.today),
            description=description,
            category=map_category(description, raw_category),
            amount=amount,
            tx_type=normalize_tx_type(tx_type),
        )
        if self.split is None:
            return tx
        return self._with_split(tx, candidate, self.split)

    # ---- split context -----------------------------------------------------------
    def _with_split(
        self, tx: NormalizedTransaction, candidate: Mapping[str, Any], split: SplitContext
    ) -> NormalizedTransaction:
        split_type = self._text(candidate.get("splitType"))
        split_type = split_type.lower() if split_type else SPLIT_EQUAL
        if split_type not in SPLIT_TYPES:
            LOG.debug("Unknown splitType %r; using %s", split_type, SPLIT_EQUAL)
            split_type = SPLIT_EQUAL
        items: Tuple[SplitItem, ...] = ()
        if split_type == SPLIT_CUSTOM:
            items = self._split_items(candidate.get("items"), split)
        return NormalizedTransaction(
            date=tx.date,
            description=tx.description,
            category=tx.category,
            amount=tx.amount,
            tx_type=tx.tx_type,
            payer=split.pick_payer(candidate.get("payer")),
            involved=split.pick_involved(candidate.get("involved")),
            split_type=split_type,
            items=items,
        )

    def _split_items(self, raw_items: Any, split: SplitContext) -> Tuple[SplitItem, ...]:
        if not isinstance(raw_items, Sequence) or isinstance(raw_items, (str, bytes)):
            return ()
        items: List[SplitItem] = []
        for raw in raw_items:
            if not isinstance(raw, Mapping):
                continue
            name = self._text(raw.get("name")) or self._text(raw.get("description"))
            amount = normalize_amount(raw.get("amount"))
            if not name or amount is None:
                continue
            items.append(SplitItem(name=name, amount=amount, involved=split.pick_involved(raw.get("involved"))))
        return tuple(items)

    @staticmethod
    def _text(value: Any) -> Optional[str]:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


def normalize_model_output(
    text: Optional[str],
    members: Optional[Iterable[Any]] = None,
    *,
    expect: str = EXPECT_ARRAY,
    today: Optional[date] = None,
) -> List[NormalizedTransaction]:
    """Convenience wrapper: raw model text in, normalized transactions out."""

    return TransactionNormalizer(members, today=today).normalize_text(text, expect=expect)
