"""
Table combination solver.

Given the tables free at a slot and a party size, pick the tables to seat
the party:

1. A single table is always preferred: the smallest table that fits.
2. Otherwise the combination with the fewest tables wins, and among those
   the one with the smallest total capacity (least wasted seats).

Restaurant floors are small, so the multi-table case enumerates subsets.
Above ``exhaustive_limit`` tables a bounded subset-sum search is used
instead; it returns a combination with the same table count and total.
"""
from itertools import combinations, accumulate
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.schemas import TableInfo

DEFAULT_EXHAUSTIVE_LIMIT = 20


def _by_size_desc(table: TableInfo) -> Tuple[int, int]:
    return (-table.seats, table.table_number)


def _total_seats(tables: Sequence[TableInfo]) -> int:
    return sum(table.seats for table in tables)


def _minimum_table_count(ordered: Sequence[TableInfo], party_size: int) -> Optional[int]:
    """
    Fewest tables that can seat the party: the shortest prefix of the
    largest tables whose capacity reaches the party size.
    """
    for count, capacity in enumerate(accumulate(t.seats for t in ordered), start=1):
        if capacity >= party_size:
            return count
    return None


def _exhaustive_search(
    ordered: Sequence[TableInfo],
    count: int,
    party_size: int,
) -> List[TableInfo]:
    best: Optional[Tuple[TableInfo, ...]] = None
    best_total = 0
    for combo in combinations(ordered, count):
        total = _total_seats(combo)
        if total < party_size:
            continue
        if best is None or total < best_total:
            best, best_total = combo, total
            if total == party_size:
                break
    return list(best) if best else []


def _bounded_search(
    ordered: Sequence[TableInfo],
    count: int,
    party_size: int,
) -> List[TableInfo]:
    """
    Subset-sum over (tables used, seats) states.

    With ``count`` minimal, an optimal combination never exceeds
    party_size + largest - 1 seats (dropping any table would still seat the
    party), so states above that cap are discarded.
    """
    cap = party_size + max(t.seats for t in ordered) - 1
    reach: List[Dict[int, Tuple[int, ...]]] = [dict() for _ in range(count + 1)]
    reach[0][0] = ()

    for index, table in enumerate(ordered):
        for used in range(min(index + 1, count), 0, -1):
            for seats, chosen in list(reach[used - 1].items()):
                total = seats + table.seats
                if total <= cap and total not in reach[used]:
                    reach[used][total] = chosen + (index,)

    feasible = [total for total in reach[count] if total >= party_size]
    if not feasible:
        return []
    return [ordered[i] for i in reach[count][min(feasible)]]


def find_best_table_combination(
    tables: Sequence[TableInfo],
    party_size: int,
    exhaustive_limit: int = DEFAULT_EXHAUSTIVE_LIMIT,
) -> List[TableInfo]:
    """
    Choose the tables that seat ``party_size`` guests.

    Args:
        tables: Tables with no conflicting booking at the slot, not disabled
        party_size: Number of guests
        exhaustive_limit: Table count above which the bounded search is used

    Returns:
        The chosen tables ordered by table number, or an empty list if no
        combination seats the party. Never raises for well-formed tables.
    """
    if party_size <= 0 or not tables:
        return []

    fitting = [t for t in tables if t.seats >= party_size]
    if fitting:
        return [min(fitting, key=lambda t: (t.seats, t.table_number))]

    ordered = sorted(tables, key=_by_size_desc)
    count = _minimum_table_count(ordered, party_size)
    if count is None:
        return []

    if len(ordered) <= exhaustive_limit:
        chosen = _exhaustive_search(ordered, count, party_size)
    else:
        chosen = _bounded_search(ordered, count, party_size)

    return sorted(chosen, key=lambda t: t.table_number)
