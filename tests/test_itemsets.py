import math

import pytest

from itemsets import (EmptyTransactionsError, InvalidThresholdError, MalformedItemError, canonical,
                      check_threshold, count_support, encode_transactions, is_subset, label)


def test_canonical_sorts_packed_strings():
    assert canonical("CBA") == ("A", "B", "C")
    assert canonical(["milk", "bread"]) == ("bread", "milk")


def test_canonical_is_idempotent():
    key = canonical(["z", "a", "m", "a"])
    assert key == ("a", "m", "z")
    assert canonical(key) == key


def test_label_joins_tokens():
    assert label(("A", "B")) == "AB"
    assert label(("bread", "milk"), ",") == "bread,milk"


def test_is_subset_ignores_multiplicity():
    assert is_subset("AA", "A")
    assert is_subset(("A", "C"), "ABC")
    assert not is_subset("AD", "ABC")


@pytest.mark.parametrize("value", [0, -0.1, 1.5, math.nan, "0.5", None, True])
def test_check_threshold_rejects_out_of_range(value):
    with pytest.raises(InvalidThresholdError):
        check_threshold("min_support", value)


def test_check_threshold_accepts_upper_bound():
    assert check_threshold("min_confidence", 1) == 1.0


def test_encode_transactions_one_hot():
    frame = encode_transactions(["A", "B", "C"], {1: "ABC", 2: "AB", 3: "D"})
    assert list(frame.columns) == ["A", "B", "C"]
    assert list(frame.index) == [1, 2, 3]
    assert frame.loc[2].tolist() == [True, True, False]
    # tokens outside the universe are dropped
    assert not frame.loc[3].any()


def test_encode_transactions_numbers_sequences_from_one():
    frame = encode_transactions(["bread", "milk"], [["bread"], ["bread", "milk"]])
    assert list(frame.index) == [1, 2]


def test_encode_transactions_rejects_empty_set():
    with pytest.raises(EmptyTransactionsError):
        encode_transactions(["A"], {})


@pytest.mark.parametrize("items", [["A", ""], ["A", 1], ["A", "A"]])
def test_encode_transactions_rejects_malformed_items(items):
    with pytest.raises(MalformedItemError):
        encode_transactions(items, {1: "A"})


def test_packed_transactions_need_single_character_items():
    with pytest.raises(MalformedItemError):
        encode_transactions(["AB", "C"], {1: "ABC"})


def test_malformed_token_inside_transaction():
    with pytest.raises(MalformedItemError):
        encode_transactions(["A"], {1: ["A", None]})


@pytest.mark.parametrize("itemset", [None, 5])
def test_transaction_that_is_not_an_itemset(itemset):
    with pytest.raises(MalformedItemError):
        encode_transactions(["A"], {1: "A", 2: itemset})


def test_count_support():
    frame = encode_transactions(["A", "B", "C"], {1: "ABC", 2: "AB", 3: "AC", 4: "A"})
    assert count_support(frame, ("A",)) == 4
    assert count_support(frame, ("A", "B")) == 2
    assert count_support(frame, ("A", "B", "C")) == 1
    assert count_support(frame, ()) == 4
