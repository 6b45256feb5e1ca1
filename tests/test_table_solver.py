"""
Unit tests for the table combination solver.

Tests cover:
- Single-table preference
- Fewest-tables then least-waste ranking for multi-table combinations
- Empty results for impossible or degenerate requests
- Agreement between the exhaustive and bounded searches
"""
import random
from itertools import combinations

import pytest

from table_booking.models.schemas import TableInfo
from table_booking.services.table_solver import find_best_table_combination


def make_tables(*seats):
    """Tables numbered from 1 with the given seat counts."""
    return [
        TableInfo(id=f"table-{number}", table_number=number, seats=count)
        for number, count in enumerate(seats, start=1)
    ]


def seats_of(tables):
    return sorted(t.seats for t in tables)


def brute_force_rank(tables, party_size):
    """(table count, total seats) of the best multi-table combination."""
    best = None
    for size in range(1, len(tables) + 1):
        for combo in combinations(tables, size):
            total = sum(t.seats for t in combo)
            if total >= party_size:
                rank = (size, total)
                if best is None or rank < best:
                    best = rank
        if best is not None:
            return best
    return None


class TestSingleTablePreference:
    """A single fitting table always wins."""

    def test_smallest_fitting_table(self):
        tables = make_tables(2, 4, 6)
        result = find_best_table_combination(tables, 3)
        assert [t.seats for t in result] == [4]

    def test_exact_fit_is_single_table(self):
        tables = make_tables(2, 2, 4)
        result = find_best_table_combination(tables, 4)
        assert len(result) == 1
        assert result[0].table_number == 3

    def test_single_table_preferred_over_less_waste(self):
        """An 8-top beats 3 + 3 for a party of 6 even though it wastes more."""
        tables = make_tables(3, 3, 8)
        result = find_best_table_combination(tables, 6)
        assert [t.seats for t in result] == [8]

    def test_tie_on_seats_takes_lowest_table_number(self):
        tables = make_tables(6, 4, 4)
        result = find_best_table_combination(tables, 3)
        assert [t.table_number for t in result] == [2]


class TestMultiTableCombination:
    """Fewest tables first, then smallest total capacity."""

    def test_fewest_tables(self):
        tables = make_tables(2, 2, 3)
        result = find_best_table_combination(tables, 5)
        assert seats_of(result) == [2, 3]

    def test_tie_break_by_wasted_capacity(self):
        tables = make_tables(2, 3, 2)
        result = find_best_table_combination(tables, 4)
        assert seats_of(result) == [2, 2]
        assert [t.table_number for t in result] == [1, 3]

    def test_result_sorted_by_table_number(self):
        tables = make_tables(4, 2, 2, 6)
        result = find_best_table_combination(tables, 9)
        numbers = [t.table_number for t in result]
        assert numbers == sorted(numbers)
        assert sum(t.seats for t in result) >= 9

    def test_uses_every_table_when_needed(self):
        tables = make_tables(2, 2, 2)
        result = find_best_table_combination(tables, 6)
        assert len(result) == 3

    def test_tables_used_at_most_once(self):
        tables = make_tables(4, 4, 2)
        result = find_best_table_combination(tables, 7)
        assert len({t.id for t in result}) == len(result)
        assert seats_of(result) == [4, 4]


class TestDegenerateInputs:
    """The solver never raises; impossible requests return an empty list."""

    def test_no_fit_returns_empty(self):
        assert find_best_table_combination(make_tables(2), 5) == []

    def test_total_capacity_too_small(self):
        assert find_best_table_combination(make_tables(2, 2, 2), 7) == []

    def test_no_tables(self):
        assert find_best_table_combination([], 2) == []

    @pytest.mark.parametrize("party_size", [0, -3])
    def test_non_positive_party_size(self, party_size):
        assert find_best_table_combination(make_tables(2, 4), party_size) == []


class TestBoundedSearch:
    """Large floors switch to the bounded subset-sum search."""

    @pytest.mark.parametrize("seed", range(8))
    def test_matches_exhaustive_ranking(self, seed):
        rng = random.Random(seed)
        tables = make_tables(*[rng.choice([2, 2, 3, 4, 4, 6]) for _ in range(12)])
        party_size = rng.randint(7, 25)

        exhaustive = find_best_table_combination(tables, party_size, exhaustive_limit=100)
        bounded = find_best_table_combination(tables, party_size, exhaustive_limit=0)

        expected = brute_force_rank(tables, party_size)
        if expected is None:
            assert exhaustive == [] and bounded == []
            return
        for result in (exhaustive, bounded):
            assert (len(result), sum(t.seats for t in result)) == expected

    def test_large_floor(self):
        tables = make_tables(*([2] * 20 + [4] * 10 + [6] * 5))
        result = find_best_table_combination(tables, 17)
        # 6 + 6 + 6 is the only three-table combination reaching 17
        assert seats_of(result) == [6, 6, 6]

    def test_large_floor_no_fit(self):
        tables = make_tables(*([2] * 25))
        assert find_best_table_combination(tables, 51) == []
