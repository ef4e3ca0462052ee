import logging
import math
from collections.abc import Iterable, Mapping
from numbers import Real

import pandas as pd

logger = logging.getLogger(__name__)


class AprioriError(Exception):
    """Base class for every error raised while mining."""


class InvalidThresholdError(AprioriError, ValueError):
    pass


class EmptyTransactionsError(AprioriError, ValueError):
    pass


class MalformedItemError(AprioriError, ValueError):
    pass


class SupportLookupError(AprioriError, KeyError):
    pass


def canonical(itemset):
    """Return the itemset as a sorted tuple of distinct tokens.

    A string is read as packed single-character tokens, so "BA" and
    ("B", "A") give the same key ("A", "B").
    """
    return tuple(sorted(set(itemset)))


def label(key, sep=""):
    """Join a key's tokens into one display string, e.g. ("A", "B") -> "AB"."""
    return sep.join(key)


def is_subset(child, parent):
    """Check that every token of child is present in parent."""
    parent_tokens = set(parent)
    for token in child:
        if token not in parent_tokens:
            return False
    return True


def check_threshold(name, value):
    """Reject thresholds that are not real numbers in (0, 1]."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidThresholdError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or not (0 < value <= 1):
        raise InvalidThresholdError(f"{name} must be in (0, 1], got {value}")
    return float(value)


def check_items(items):
    """Validate the item universe and return it as a list in the given order."""
    universe = list(items)
    seen = set()
    for item in universe:
        if not isinstance(item, str) or not item:
            raise MalformedItemError(f"Item tokens must be non-empty strings, got {item!r}")
        if item in seen:
            raise MalformedItemError(f"Duplicate item token {item!r}")
        seen.add(item)
    return universe


def as_mapping(transactions):
    """Accept a mapping of id to itemset, or a plain sequence numbered from 1."""
    if isinstance(transactions, Mapping):
        return transactions
    return {tid: itemset for tid, itemset in enumerate(transactions, start=1)}


def normalize_transactions(transactions):
    """Return transactions as an id -> token set mapping."""
    if not transactions:
        raise EmptyTransactionsError("Cannot compute support over an empty transaction set")

    normalized = {}
    for tid, itemset in transactions.items():
        if isinstance(itemset, str):
            normalized[tid] = set(itemset)
            continue
        if not isinstance(itemset, Iterable):
            raise MalformedItemError(f"Transaction {tid} is not an itemset: {itemset!r}")
        tokens = set()
        for token in itemset:
            if not isinstance(token, str) or not token:
                raise MalformedItemError(f"Transaction {tid} holds a malformed token {token!r}")
            tokens.add(token)
        normalized[tid] = tokens
    return normalized


def check_packed_encoding(universe, transactions):
    """Packed string transactions only make sense for single-character items."""
    if not any(isinstance(itemset, str) for itemset in transactions.values()):
        return
    for item in universe:
        if len(item) != 1:
            raise MalformedItemError(
                f"Item {item!r} is not a single character but transactions are packed strings")


def encode_transactions(items, transactions):
    """One-hot encode transactions over the item universe (columns in universe order)."""
    universe = check_items(items)
    packed = as_mapping(transactions)
    check_packed_encoding(universe, packed)
    normalized = normalize_transactions(packed)

    known = set(universe)
    encoded = []
    for tid, tokens in normalized.items():
        unknown = tokens - known
        if unknown:
            logger.debug(f"Transaction {tid}: ignoring tokens outside the universe {sorted(unknown)}")
        encoded.append({item: (item in tokens) for item in universe})

    return pd.DataFrame(encoded, index=list(normalized.keys()), columns=universe, dtype=bool)


def count_support(frame, itemset):
    """Count the transactions that contain every token of the itemset."""
    tokens = list(itemset)
    if not tokens:
        return len(frame)
    return int(frame[tokens].all(axis=1).sum())
