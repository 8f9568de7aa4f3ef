from statement_scan.domain.models import NormalizedTransaction
from statement_scan.extraction.dedup import deduplicate_transactions, is_duplicate


def _tx(description="Cafe", amount=5.0, date="2025-01-01", split_type=None):
    return NormalizedTransaction(
        date=date,
        description=description,
        category="food",
        amount=amount,
        split_type=split_type,
    )


def test_same_cent_amounts_are_duplicates():
    assert is_duplicate(_tx(amount=5.0), _tx(amount=5.004))
    assert is_duplicate(_tx(amount=0.3), _tx(amount=0.1 + 0.2))
    assert not is_duplicate(_tx(amount=5.0), _tx(amount=5.02))


def test_one_cent_apart_are_distinct_transactions():
    assert not is_duplicate(_tx(amount=5.0), _tx(amount=5.01))
    low, high = _tx(amount=5.0), _tx(amount=5.01)
    assert deduplicate_transactions([low, high]) == [low, high]


def test_date_and_description_must_match_exactly():
    assert not is_duplicate(_tx(), _tx(date="2025-01-02"))
    assert not is_duplicate(_tx(), _tx(description="cafe"))


def test_first_occurrence_kept_in_original_order():
    a = _tx("A", 1.0)
    b = _tx("B", 2.0)
    c = _tx("C", 3.0)
    a_again = _tx("A", 1.004)
    assert deduplicate_transactions([a, b, a_again, c]) == [a, b, c]
    assert deduplicate_transactions([a_again, a])[0] is a_again


def test_custom_split_entries_are_exempt():
    custom = _tx(split_type="custom")
    equal = _tx(split_type="equal")
    result = deduplicate_transactions([custom, custom, equal, equal])
    assert result == [custom, custom, equal]


def test_empty_input():
    assert deduplicate_transactions([]) == []
