"""Model text → normalized transactions.

Modules:
- response: locate and parse the JSON payload inside model text
- normalizer: candidate filtering and field normalization
- dedup: stable removal of near-duplicate records
"""

from .dedup import deduplicate_transactions
from .normalizer import SplitContext, TransactionNormalizer, normalize_model_output
from .response import EXPECT_ARRAY, EXPECT_OBJECT, extract_json_payload, strip_code_fences

__all__ = [
    "EXPECT_ARRAY",
    "EXPECT_OBJECT",
    "SplitContext",
    "TransactionNormalizer",
    "deduplicate_transactions",
    "extract_json_payload",
    "normalize_model_output",
    "strip_code_fences",
]
