from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


TX_EXPENSE = "expense"
TX_INCOME = "income"

SPLIT_EQUAL = "equal"
SPLIT_CUSTOM = "custom"
SPLIT_TYPES: Tuple[str, ...] = (SPLIT_EQUAL, SPLIT_CUSTOM)


@dataclass(frozen=True)
class SplitItem:
    """One line of a custom split: who shares which part of the amount."""

    name: str
    amount: float
    involved: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "amount": self.amount, "involved": list(self.involved)}


@dataclass(frozen=True)
class NormalizedTransaction:
    date: str
    description: str
    category: str
    amount: float
    tx_type: str = TX_EXPENSE
    payer: Optional[str] = None
    involved: Optional[Tuple[str, ...]] = None
    split_type: Optional[str] = None
    items: Tuple[SplitItem, ...] = ()

    @property
    def has_split_context(self) -> bool:
        return self.split_type is not None

    @property
    def is_custom_split(self) -> bool:
        return self.split_type == SPLIT_CUSTOM

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the wire keys (``txType``, ``splitType``)."""
        out: Dict[str, Any] = {
            "date": self.date,
            "description": self.description,
            "category": self.category,
            "amount": self.amount,
            "txType": self.tx_type,
        }
        if self.has_split_context:
            out["payer"] = self.payer
            out["involved"] = list(self.involved or ())
            out["splitType"] = self.split_type
            if self.items:
                out["items"] = [item.to_dict() for item in self.items]
        return out
