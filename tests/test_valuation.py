"""Tests for the baseline and extended move valuation policies."""

from __future__ import annotations

import pytest

from builders import make_board, make_snake
from cornelius import (
    BASELINE_SCORES,
    EXTENDED_SCORES,
    POLICIES,
    Coord,
    baseline_value,
    extended_value,
    value_of_move,
)

RIGHT_COLUMN = [(9, y) for y in range(10)]

FLOORS = {"baseline": BASELINE_SCORES["blocked"], "extended": EXTENDED_SCORES["wall"]}


class TestBaselineValue:
    def setup_method(self) -> None:
        self.me = make_snake("me", head=(5, 5), body=[(5, 4), (5, 3)])
        self.board = make_board([self.me])

    @pytest.mark.parametrize("x, y", [(-1, 5), (10, 5), (5, 10), (5, -1)])
    def test_head_will_not_hit_wall(self, x: int, y: int) -> None:
        assert baseline_value(Coord(x, y), self.board, self.me) == 0

    @pytest.mark.parametrize("x, y", [(0, 5), (5, 0), (9, 5), (5, 9)])
    def test_edge_cells_are_legal(self, x: int, y: int) -> None:
        assert baseline_value(Coord(x, y), self.board, self.me) == 100

    def test_do_not_hit_me(self) -> None:
        assert baseline_value(Coord(5, 4), self.board, self.me) == 0

    def test_do_not_bite_hettie(self) -> None:
        hettie = make_snake("hettie", head=(3, 2), body=[(4, 2)])
        board = make_board([hettie, self.me])
        assert baseline_value(Coord(4, 2), board, self.me) == 0

    def test_potential_snake_head(self) -> None:
        hettie = make_snake("hettie", head=(3, 7), length=4)
        board = make_board([self.me, hettie])
        assert baseline_value(Coord(4, 7), board, self.me) == 25

    def test_hazards_identified(self) -> None:
        me = make_snake("me", head=(5, 5), health=65 + 14)
        board = make_board([me], hazards=RIGHT_COLUMN)
        assert baseline_value(Coord(9, 7), board, me) == 65

    def test_fatal_hazard_still_beats_collision(self) -> None:
        me = make_snake("me", head=(5, 5), health=10)
        board = make_board([me], hazards=RIGHT_COLUMN)
        assert baseline_value(Coord(9, 7), board, me) == 1

    def test_threat_outranks_hazard(self) -> None:
        hettie = make_snake("hettie", head=(8, 7), length=5)
        me = make_snake("me", head=(5, 5), health=99)
        board = make_board([me, hettie], hazards=RIGHT_COLUMN)
        assert baseline_value(Coord(9, 7), board, me) == BASELINE_SCORES["threat"]

    def test_head_will_travel(self) -> None:
        assert baseline_value(Coord(2, 2), self.board, self.me) == 100


class TestExtendedValue:
    def setup_method(self) -> None:
        self.me = make_snake("me", head=(5, 5), body=[(5, 4), (5, 3)], length=4)
        self.board = make_board([self.me])

    def test_open_cell_with_room(self) -> None:
        assert extended_value(Coord(5, 6), self.board, self.me) == 150

    def test_edge_hugging_penalty(self) -> None:
        assert extended_value(Coord(0, 5), self.board, self.me) == 110
        assert extended_value(Coord(5, 0), self.board, self.me) == 110

    def test_far_edges_are_not_penalized(self) -> None:
        assert extended_value(Coord(9, 5), self.board, self.me) == 150

    def test_wall(self) -> None:
        assert extended_value(Coord(-1, 5), self.board, self.me) == EXTENDED_SCORES["wall"]

    def test_snake(self) -> None:
        assert extended_value(Coord(5, 4), self.board, self.me) == EXTENDED_SCORES["snake"]

    def test_threat(self) -> None:
        hettie = make_snake("hettie", head=(3, 7), length=4)
        board = make_board([self.me, hettie])
        assert extended_value(Coord(4, 7), board, self.me) == 70

    def test_food(self) -> None:
        board = make_board([self.me], food=[(5, 6)])
        assert extended_value(Coord(5, 6), board, self.me) == 225

    def test_hazard_scaled_by_health(self) -> None:
        me = make_snake("me", head=(5, 5), health=79)
        board = make_board([me], hazards=[(6, 5)])
        assert extended_value(Coord(6, 5), board, me) == 100 - 35 + 50

    def test_food_masks_hazard(self) -> None:
        board = make_board([self.me], food=[(5, 6)], hazards=[(5, 6)])
        assert extended_value(Coord(5, 6), board, self.me) == 225

    def test_trapped_corner(self) -> None:
        me = make_snake("me", head=(1, 0), body=[(1, 1), (0, 1)])
        board = make_board([me])
        assert extended_value(Coord(0, 0), board, me) == 60 - 80

    def test_partial_room(self) -> None:
        # dead-end pocket (0,0)-(0,1)-(0,2) closed off by our own body
        me = make_snake("me", head=(1, 0), body=[(1, 1), (1, 2), (1, 3), (0, 3)], length=5)
        board = make_board([me])
        assert extended_value(Coord(0, 0), board, me) == 60 - (80 - 2)

    def test_legal_floor(self) -> None:
        me = make_snake("me", head=(1, 0), body=[(2, 0), (3, 0)], health=1)
        hettie = make_snake("hettie", head=(0, 1), body=[(0, 2), (0, 3)], length=4)
        board = make_board([me, hettie], hazards=[(0, 0)])
        score = extended_value(Coord(0, 0), board, me)
        assert score == EXTENDED_SCORES["legal_floor"]
        assert score > EXTENDED_SCORES["snake"] > EXTENDED_SCORES["wall"]


class TestPolicyProperties:
    @pytest.mark.parametrize("policy", sorted(POLICIES))
    @pytest.mark.parametrize("x, y", [(-1, 4), (10, 4), (4, -1), (4, 10)])
    def test_out_of_bounds_is_floor_regardless_of_modifiers(self, policy: str, x: int, y: int) -> None:
        me = make_snake("me", head=(4, 4), health=50)
        plain = make_board([me])
        decorated = make_board([me], food=[(x, y)], hazards=[(x, y)])
        assert value_of_move(Coord(x, y), plain, me, policy) == value_of_move(
            Coord(x, y), decorated, me, policy
        )
        assert value_of_move(Coord(x, y), plain, me, policy) == FLOORS[policy]

    @pytest.mark.parametrize("policy", sorted(POLICIES))
    def test_occupied_scores_below_open(self, policy: str) -> None:
        me = make_snake("me", head=(4, 4), body=[(4, 3), (4, 2)])
        hettie = make_snake("hettie", head=(7, 7), body=[(7, 6)], length=2)
        board = make_board([me, hettie])
        open_cell = value_of_move(Coord(2, 5), board, me, policy)
        assert value_of_move(Coord(4, 3), board, me, policy) < open_cell
        assert value_of_move(Coord(7, 6), board, me, policy) < open_cell

    def test_default_policy_is_baseline(self) -> None:
        me = make_snake("me", head=(4, 4))
        board = make_board([me])
        assert value_of_move(Coord(4, 5), board, me) == baseline_value(Coord(4, 5), board, me)

    def test_unknown_policy(self) -> None:
        me = make_snake("me", head=(4, 4))
        with pytest.raises(ValueError, match="unknown valuation policy"):
            value_of_move(Coord(4, 5), make_board([me]), me, "greedy")
