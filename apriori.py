import logging
from collections import namedtuple
from itertools import combinations

from itemsets import (SupportLookupError, canonical, check_threshold, count_support,
                      encode_transactions, is_subset, label)

logger = logging.getLogger(__name__)

Rule = namedtuple("Rule", ["antecedent", "consequent", "confidence"])


class Result(namedtuple("Result", ["all_frequent_items", "closed_itemsets", "maximal_itemsets",
                                   "strong_rules", "transaction_count"])):
    """Everything mined by one call to solve().

    all_frequent_items maps each frequent itemset key to its absolute support,
    in the order the levels were mined. closed_itemsets maps each closed key
    to its immediate frequent supersets and their supports.
    """
    __slots__ = ()

    def relative_support(self, itemset):
        """Support of a frequent itemset as a fraction of all transactions.

        A string is read as packed single-character tokens, so itemsets of
        multi-character items must be passed as a sequence of tokens.
        """
        return self.all_frequent_items[canonical(itemset)] / self.transaction_count


def filter_frequent_itemsets(support_counts, min_sup, total_transactions):
    """Keep the itemsets whose relative support meets the minimum support threshold."""
    return {itemset: count for itemset, count in support_counts.items()
            if count / total_transactions >= min_sup}


def get_l1_frequent_items(frame, min_sup):
    """Count every item of the universe and keep the frequent 1-itemsets."""
    support_counts = {(item,): count_support(frame, (item,)) for item in frame.columns}
    return filter_frequent_itemsets(support_counts, min_sup, len(frame))


def get_candidate(first, second):
    """Join two keys of the same level, or return None when their prefixes differ."""
    if len(first) == 1:
        return first + second
    if first[:-1] == second[:-1]:
        return first + second[-1:]
    return None


def generate_candidates(frequent_itemsets, frame):
    """Generate and count the candidates of the next level by joining pairs of the current one."""
    candidates = {}
    keys = list(frequent_itemsets)

    for i in range(len(keys)):
        for j in range(i + 1, len(keys)):
            candidate = get_candidate(keys[i], keys[j])
            if candidate is not None:
                candidate = canonical(candidate)
                candidates[candidate] = count_support(frame, candidate)

    return candidates


def mine_frequent_itemsets(frame, min_sup):
    """Run the level-wise search and return the support table of every frequent itemset."""
    total_transactions = len(frame)

    # Step 1: frequent 1-itemsets
    frequent_itemsets = get_l1_frequent_items(frame, min_sup)
    all_frequent_itemsets = dict(frequent_itemsets)
    logger.info(f"Found {len(frequent_itemsets)} frequent 1-itemsets among {len(frame.columns)} items")

    # Step 2: grow one level at a time until a round yields no candidates at all
    k = 2
    while True:
        candidates = generate_candidates(frequent_itemsets, frame)
        if not candidates:
            break

        frequent_itemsets = filter_frequent_itemsets(candidates, min_sup, total_transactions)
        all_frequent_itemsets.update(frequent_itemsets)
        logger.info(f"Found {len(frequent_itemsets)} frequent {k}-itemsets from {len(candidates)} candidates")
        logger.debug(f"Level {k}: {' '.join(label(itemset, ',') for itemset in frequent_itemsets)}")
        k += 1

    return all_frequent_itemsets


def group_by_size(all_frequent_itemsets):
    groups = {}
    for itemset in all_frequent_itemsets:
        groups.setdefault(len(itemset), []).append(itemset)
    return groups


def get_item_parents(child, groups, all_frequent_itemsets):
    """Return the frequent itemsets one token larger than child that contain it."""
    return {parent: all_frequent_itemsets[parent] for parent in groups.get(len(child) + 1, [])
            if is_subset(child, parent)}


def is_closed(child, parents, all_frequent_itemsets):
    support = all_frequent_itemsets[child]
    for parent_support in parents.values():
        if parent_support == support:
            return False
    return True


def get_closed_itemsets(all_frequent_itemsets):
    """Map every closed frequent itemset to its immediate frequent supersets."""
    closed = {}
    groups = group_by_size(all_frequent_itemsets)

    for itemset in all_frequent_itemsets:
        parents = get_item_parents(itemset, groups, all_frequent_itemsets)
        if is_closed(itemset, parents, all_frequent_itemsets):
            closed[itemset] = parents

    return closed


def get_maximal_itemsets(closed_itemsets):
    """Closed itemsets without any frequent superset."""
    return [itemset for itemset, parents in closed_itemsets.items() if not parents]


def generate_bipartitions(itemset):
    """Yield each unordered split of the itemset into two non-empty halves exactly once.

    The smaller half comes first. An n-itemset has 2 ** (n - 1) - 1 such splits.
    """
    n = len(itemset)
    for size in range(1, n // 2 + 1):
        for antecedent in combinations(itemset, size):
            # an even split and its mirror are the same bipartition
            if 2 * size == n and antecedent[0] != itemset[0]:
                continue
            consequent = tuple(token for token in itemset if token not in antecedent)
            yield antecedent, consequent


def generate_rules(all_frequent_itemsets):
    """Candidate rules from every frequent itemset with more than one item."""
    rules = []
    for itemset in all_frequent_itemsets:
        if len(itemset) > 1:
            rules.extend(generate_bipartitions(itemset))
    return rules


def get_confidence(antecedent, itemset, all_frequent_itemsets):
    try:
        return all_frequent_itemsets[itemset] / all_frequent_itemsets[antecedent]
    except KeyError as e:
        raise SupportLookupError(
            f"Itemset {label(e.args[0], ',')} is missing from the support table") from e


def get_strong_rules(rules, all_frequent_itemsets, min_conf):
    """Score every split in both directions and keep the rules meeting min_conf."""
    strong_rules = []

    for x, y in rules:
        xy = canonical(x + y)
        for antecedent, consequent in ((x, y), (y, x)):
            confidence = get_confidence(antecedent, xy, all_frequent_itemsets)
            if confidence >= min_conf:
                strong_rules.append(Rule(antecedent, consequent, confidence))

    strong_rules.sort(key=lambda rule: (rule.antecedent, rule.consequent, -rule.confidence))
    return strong_rules


def solve(min_support, min_confidence, items, transactions):
    """Mine frequent, closed and maximal itemsets and the strong rules they imply."""
    min_support = check_threshold("min_support", min_support)
    min_confidence = check_threshold("min_confidence", min_confidence)

    frame = encode_transactions(items, transactions)

    all_frequent_itemsets = mine_frequent_itemsets(frame, min_support)
    closed_itemsets = get_closed_itemsets(all_frequent_itemsets)
    maximal_itemsets = get_maximal_itemsets(closed_itemsets)
    rules = generate_rules(all_frequent_itemsets)
    strong_rules = get_strong_rules(rules, all_frequent_itemsets, min_confidence)

    logger.info(f"Mined {len(all_frequent_itemsets)} frequent itemsets ({len(closed_itemsets)} closed, "
                f"{len(maximal_itemsets)} maximal) and {len(strong_rules)} strong rules "
                f"from {len(frame)} transactions")

    return Result(all_frequent_itemsets, closed_itemsets, maximal_itemsets, strong_rules, len(frame))
