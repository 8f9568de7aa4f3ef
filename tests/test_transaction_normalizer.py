import re
from datetime import date

from statement_scan.extraction.normalizer import TransactionNormalizer, normalize_model_output

TODAY = date(2025, 6, 15)
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _normalizer(members=None):
    return TransactionNormalizer(members, today=TODAY)


def test_fenced_model_output_example():
    text = (
        "```json\n"
        '[{"date":"Sun 02 Nov 2025","description":"KFC (Sebastopol)",'
        '"category":"Eating out","amount":24.35,"type":"expense"}]\n'
        "```"
    )
    result = normalize_model_output(text, today=TODAY)

    assert len(result) == 1
    tx = result[0]
    # Natural-language dates are not parsed; the model is expected to emit ISO.
    assert tx.date == "2025-06-15"
    assert tx.description == "KFC (Sebastopol)"
    assert tx.category == "food"
    assert tx.amount == 24.35
    assert tx.tx_type == "expense"
    assert tx.to_dict() == {
        "date": "2025-06-15",
        "description": "KFC (Sebastopol)",
        "category": "food",
        "amount": 24.35,
        "txType": "expense",
    }


def test_numeric_string_amount_is_coerced():
    [tx] = _normalizer().normalize([{"amount": "24.3500", "description": "X"}])
    assert tx.amount == 24.35
    assert isinstance(tx.amount, float)
    assert tx.category == "other"


def test_amount_rounds_half_up_at_the_cent():
    [tx] = _normalizer().normalize([{"amount": 10.005, "description": "Rounding"}])
    assert tx.amount == 10.01


def test_near_duplicate_amounts_collapse_to_first():
    result = _normalizer().normalize(
        [
            {"date": "2025-01-01", "description": "Cafe", "amount": 5.00},
            {"date": "2025-01-01", "description": "Cafe", "amount": 5.004},
        ]
    )
    assert len(result) == 1
    assert result[0].amount == 5.0


def test_amounts_one_cent_apart_are_both_kept():
    result = _normalizer().normalize(
        [
            {"date": "2025-01-01", "description": "Cafe", "amount": 5.00},
            {"date": "2025-01-01", "description": "Cafe", "amount": 5.01},
        ]
    )
    assert [tx.amount for tx in result] == [5.0, 5.01]


def test_model_labelled_other_uses_merchant_fallback():
    [tx] = _normalizer().normalize([{"description": "KFC (Sebastopol)", "category": "Other", "amount": 9}])
    assert tx.category == "food"


def test_merchant_override_wins_over_unmatched_category():
    [tx] = _normalizer().normalize([{"description": "QUT enrolment", "category": "Fees", "amount": 500}])
    assert tx.category == "education"


def test_invalid_candidates_are_dropped():
    candidates = [
        {"description": "Zero", "amount": 0},
        {"description": "Negative", "amount": -4.5},
        {"description": "Words", "amount": "abc"},
        {"description": "Missing"},
        {"description": "Bool", "amount": True},
        {"description": "", "amount": 3},
        {"amount": 3},
        "not a mapping",
        {"description": "Kept", "amount": 3},
    ]
    result = _normalizer().normalize(candidates)
    assert [tx.description for tx in result] == ["Kept"]


def test_valid_candidates_produce_iso_dates_and_cents():
    candidates = [
        {"date": "2025-03-04", "description": "A", "amount": 1.239},
        {"date": "3/7", "description": "B", "amount": 2},
        {"date": "2024/1/5", "description": "C", "amount": 3.5},
        {"date": "yesterday", "description": "D", "amount": 4},
        {"description": "E", "amount": "5.555"},
    ]
    result = _normalizer().normalize(candidates)
    assert len(result) == len(candidates)
    for tx in result:
        assert ISO_DATE.match(tx.date)
        assert round(tx.amount, 2) == tx.amount
    assert [tx.date for tx in result] == ["2025-03-04", "2025-03-07", "2024-01-05", "2025-06-15", "2025-06-15"]
    assert result[0].amount == 1.24
    assert result[4].amount == 5.56


def test_type_defaults_to_expense_unless_exactly_income():
    result = _normalizer().normalize(
        [
            {"description": "Salary", "amount": 100, "type": "income"},
            {"description": "Refund", "amount": 100, "type": "Income"},
            {"description": "Lunch", "amount": 100},
        ]
    )
    assert [tx.tx_type for tx in result] == ["income", "expense", "expense"]


def test_object_payloads_are_coerced_to_sequences():
    normalizer = _normalizer()
    wrapped = normalizer.normalize({"transactions": [{"description": "Coles", "amount": 9}]})
    single = normalizer.normalize({"description": "Coles", "amount": 9})
    assert wrapped == single
    assert single[0].category == "groceries"
    assert normalizer.normalize(42) == []
    assert normalizer.normalize(None) == []


def test_unextractable_text_returns_empty_list():
    assert normalize_model_output("Sorry, I cannot help with that.", today=TODAY) == []
    assert normalize_model_output("[{broken", today=TODAY) == []


def test_split_context_defaults_from_members():
    [tx] = _normalizer(["Alice", "Bob"]).normalize([{"description": "Coles", "amount": 30}])
    assert tx.payer == "Alice"
    assert tx.involved == ("Alice", "Bob")
    assert tx.split_type == "equal"
    data = tx.to_dict()
    assert data["payer"] == "Alice"
    assert data["involved"] == ["Alice", "Bob"]
    assert data["splitType"] == "equal"
    assert "items" not in data


def test_split_context_keeps_known_values_only():
    [tx] = _normalizer(["Alice", "Bob"]).normalize(
        [
            {
                "description": "Coles",
                "amount": 30,
                "payer": "Carol",
                "involved": ["Bob", "Zed"],
                "splitType": "weird",
            }
        ]
    )
    assert tx.payer == "Alice"
    assert tx.involved == ("Bob",)
    assert tx.split_type == "equal"


def test_no_split_fields_without_members():
    [tx] = _normalizer().normalize([{"description": "Coles", "amount": 30, "payer": "Alice"}])
    assert tx.payer is None
    assert "payer" not in tx.to_dict()


def test_custom_split_items_and_dedup_exemption():
    entry = {
        "date": "2025-05-01",
        "description": "Hanaro Mart",
        "amount": 20,
        "payer": "Bob",
        "splitType": "custom",
        "items": [
            {"name": "Kimchi", "amount": "12.50", "involved": ["Alice"]},
            {"name": "Rice", "amount": 7.5},
            {"name": "", "amount": 3},
        ],
    }
    result = _normalizer(["Alice", "Bob"]).normalize([entry, dict(entry)])
    assert len(result) == 2
    tx = result[0]
    assert tx.payer == "Bob"
    assert tx.split_type == "custom"
    assert [(i.name, i.amount, i.involved) for i in tx.items] == [
        ("Kimchi", 12.5, ("Alice",)),
        ("Rice", 7.5, ("Alice", "Bob")),
    ]
    assert tx.to_dict()["items"][0] == {"name": "Kimchi", "amount": 12.5, "involved": ["Alice"]}


def test_normalizing_normalized_records_is_idempotent():
    raw = [
        {"date": "2025-04-01", "description": "Coles Sebastopol", "category": "Groceries", "amount": "41.2"},
        {"date": "4/2", "description": "Uber Trip", "category": "Transport", "amount": 18.456},
        {"date": "2025/4/3", "description": "Bank fee", "category": "Fees", "amount": 2},
        {"date": "2025-04-04", "description": "Salary", "category": "Income", "amount": 1000, "type": "income"},
        {"date": "2025-04-05", "description": "KFC", "amount": 9.95},
    ]
    for members in (None, ["Alice", "Bob"]):
        normalizer = _normalizer(members)
        first = normalizer.normalize(raw)
        second = normalizer.normalize([tx.to_dict() for tx in first])
        assert second == first
