"""Tests for the local player session."""

import random

import pytest

from dualitaire.config import Config
from dualitaire.game.session import MoveKind, PlayerSession
from dualitaire.models.board import TABLEAU_COLUMNS, Board, CardRef, PileKind
from dualitaire.models.card import Card, Rank, Suit


def card(suit: Suit, rank: Rank, face_up: bool = True) -> Card:
    return Card(suit=suit, rank=rank, face_up=face_up)


def make_board(tableau=None, waste=(), stock=(), foundation=None) -> Board:
    columns = list(tableau or [])
    columns += [()] * (TABLEAU_COLUMNS - len(columns))
    piles = list(foundation or [])
    piles += [()] * (4 - len(piles))
    return Board(
        stock=tuple(stock),
        waste=tuple(waste),
        tableau=tuple(tuple(c) for c in columns),
        foundation=tuple(tuple(p) for p in piles),
    )


@pytest.fixture
def session() -> PlayerSession:
    return PlayerSession(Config(), random.Random(9))


class TestRoundSetup:
    """Tests for dealing and clearing."""

    def test_new_round(self, session):
        """Test a new round deals a full board and resets the score."""
        session.scorer.score = 500
        session.new_round()
        assert session.has_board()
        assert session.board.card_count() == 52
        assert session.score == 0
        assert session.selection is None

    def test_clear_board(self, session):
        """Test clearing leaves an empty board."""
        session.new_round()
        session.clear_board()
        assert not session.has_board()


class TestStockClick:
    """Tests for clicking the stock."""

    def test_draw_scores_nothing(self, session):
        """Test drawing moves a card and publishes nothing."""
        session.board = make_board(stock=[card(Suit.HEART, Rank.SIX, False)])
        outcome = session.click_stock(0)
        assert outcome.kind == MoveKind.DRAW
        assert not outcome.scored
        assert len(session.board.waste) == 1

    def test_recycle_penalty(self, session):
        """Test recycling the waste costs 50 points."""
        session.board = make_board(waste=[card(Suit.HEART, Rank.SIX)])
        outcome = session.click_stock(0)
        assert outcome.kind == MoveKind.RECYCLE
        assert outcome.points == -50
        assert session.score == -50

    def test_stock_click_clears_selection(self, session):
        """Test clicking the stock drops an armed selection."""
        session.board = make_board(
            tableau=[[card(Suit.HEART, Rank.NINE)]],
            stock=[card(Suit.CLUB, Rank.TWO, False)],
        )
        session.click_card(PileKind.TABLEAU, 0)
        assert session.selection is not None
        session.click_stock(0)
        assert session.selection is None

    def test_empty_stock_and_waste(self, session):
        """Test clicking with nothing to draw is a no-op."""
        session.board = make_board(tableau=[[card(Suit.HEART, Rank.NINE)]])
        assert session.click_stock(0).kind == MoveKind.NONE


class TestCardClick:
    """Tests for selection, smart move and execution."""

    def test_smart_move_to_foundation(self, session):
        """Test a playable top card goes straight to its foundation."""
        session.board = make_board(waste=[card(Suit.DIAMOND, Rank.ACE)])
        outcome = session.click_card(PileKind.WASTE, 0, now=1000)
        assert outcome.kind == MoveKind.FOUNDATION
        assert outcome.points == 100
        assert session.board.foundation[0][0].same_card(card(Suit.DIAMOND, Rank.ACE))
        assert session.board.waste == ()

    def test_select_then_move(self, session):
        """Test selecting a card and clicking a legal column moves it."""
        session.board = make_board(tableau=[
            [card(Suit.HEART, Rank.FIVE, False), card(Suit.HEART, Rank.NINE)],
            [card(Suit.SPADE, Rank.TEN)],
        ])
        first = session.click_card(PileKind.TABLEAU, 0, 1)
        assert first.kind == MoveKind.SELECT
        assert session.selection == CardRef(kind=PileKind.TABLEAU, pile_index=0, card_index=1)

        second = session.click_card(PileKind.TABLEAU, 1)
        assert second.kind == MoveKind.TABLEAU
        assert second.points == 5  # Flip bonus
        assert session.selection is None
        assert [c.rank for c in session.board.tableau[1]] == [Rank.TEN, Rank.NINE]
        assert session.board.tableau[0][0].face_up

    def test_king_to_empty_column(self, session):
        """Test a King moves to an empty column."""
        session.board = make_board(tableau=[[], [card(Suit.SPADE, Rank.KING)]], waste=[card(Suit.CLUB, Rank.KING)])
        session.click_card(PileKind.WASTE, 0)
        outcome = session.click_card(PileKind.TABLEAU, 0)
        assert outcome.kind == MoveKind.TABLEAU
        assert outcome.points == 0
        assert session.board.tableau[0][0].suit == Suit.CLUB

    def test_click_same_card_deselects(self, session):
        """Test clicking the selected card again clears the selection."""
        session.board = make_board(tableau=[[card(Suit.HEART, Rank.NINE)]])
        session.click_card(PileKind.TABLEAU, 0)
        outcome = session.click_card(PileKind.TABLEAU, 0)
        assert outcome.kind == MoveKind.DESELECT
        assert session.selection is None

    def test_illegal_destination_deselects(self, session):
        """Test an illegal destination clears the selection only."""
        board = make_board(tableau=[[card(Suit.HEART, Rank.NINE)], [card(Suit.DIAMOND, Rank.TEN)]])
        session.board = board
        session.click_card(PileKind.TABLEAU, 0)
        outcome = session.click_card(PileKind.TABLEAU, 1)
        assert outcome.kind == MoveKind.DESELECT
        assert not outcome.moved
        assert session.board == board
        assert session.score == 0

    def test_face_down_not_selectable(self, session):
        """Test face-down cards cannot be selected."""
        session.board = make_board(tableau=[[card(Suit.HEART, Rank.NINE, False), card(Suit.SPADE, Rank.TWO)]])
        assert session.click_card(PileKind.TABLEAU, 0, 0).kind == MoveKind.NONE
        assert session.selection is None

    def test_foundation_not_selectable(self, session):
        """Test foundation cards never start a move."""
        session.board = make_board(foundation=[[card(Suit.HEART, Rank.ACE)]])
        assert session.click_card(PileKind.FOUNDATION, 0).kind == MoveKind.NONE
        assert session.selection is None

    def test_frozen_column_ignored(self, session):
        """Test clicks on a frozen column do nothing."""
        session.board = make_board(tableau=[[card(Suit.HEART, Rank.ACE)]])
        session.freezes.frozen[0] = 99_999
        outcome = session.click_card(PileKind.TABLEAU, 0, now=1000)
        assert outcome.kind == MoveKind.NONE
        assert session.board.foundation_count() == 0

    def test_frozen_destination_rejected(self, session):
        """Test a selection cannot be dropped onto a frozen column."""
        session.board = make_board(tableau=[[card(Suit.HEART, Rank.NINE)], [card(Suit.SPADE, Rank.TEN)]])
        session.click_card(PileKind.TABLEAU, 0)
        session.freezes.frozen[1] = 99_999
        outcome = session.click_card(PileKind.TABLEAU, 1)
        assert outcome.kind == MoveKind.NONE
        assert len(session.board.tableau[1]) == 1

    def test_out_of_range_pile_ignored(self, session):
        """Test clicks on a pile index that does not exist do nothing."""
        board = make_board(tableau=[[card(Suit.HEART, Rank.NINE)]])
        session.board = board
        assert session.click_card(PileKind.TABLEAU, TABLEAU_COLUMNS).kind == MoveKind.NONE
        assert session.click_card(PileKind.FOUNDATION, 4).kind == MoveKind.NONE
        assert session.click_card(PileKind.TABLEAU, -1).kind == MoveKind.NONE
        assert session.board == board
        assert session.selection is None


class TestAttackTrigger:
    """Tests for attack charge through the session."""

    def test_two_placements_attack(self, session):
        """Test two foundation placements earn an attack."""
        session.board = make_board(tableau=[[card(Suit.SPADE, Rank.ACE)], [card(Suit.HEART, Rank.ACE)]])
        first = session.click_card(PileKind.TABLEAU, 0, now=1000)
        second = session.click_card(PileKind.TABLEAU, 1, now=1500)
        assert not first.attack
        assert second.attack
        assert session.score == 220
        assert session.charge == 0

    def test_receive_attack(self, session):
        """Test an attack freezes one of the local columns."""
        session.new_round()
        column = session.receive_attack(1000)
        assert column is not None
        assert session.freezes.frozen == {column: 6000}

    def test_receive_attack_without_board(self, session):
        """Test an attack before the deal is dropped."""
        assert session.receive_attack(1000) is None
