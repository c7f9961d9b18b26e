"""Unit tests for the outcome resolver."""

import itertools

import pytest

from fairplay.constants import Choice
from fairplay.errors import ConfigurationError
from fairplay.services.resolver import determine_winner, resolve

R, P, S = Choice.ROCK, Choice.PAPER, Choice.SCISSORS


class TestDetermineWinner:
    """Test the two-player dominance rule."""

    def test_cycle(self):
        """Rock beats Scissors, Scissors beats Paper, Paper beats Rock."""
        assert determine_winner(R, S) == "win"
        assert determine_winner(S, P) == "win"
        assert determine_winner(P, R) == "win"

    @pytest.mark.parametrize("a,b", list(itertools.product([R, P, S], repeat=2)))
    def test_antisymmetric(self, a, b):
        """Swapping sides swaps win and loss; equal choices tie."""
        forward = determine_winner(a, b)
        backward = determine_winner(b, a)
        if a == b:
            assert forward == backward == "tie"
        else:
            assert {forward, backward} == {"win", "loss"}

    def test_invalid(self):
        with pytest.raises(ConfigurationError):
            determine_winner(R, 0)


class TestResolve:
    """Test N-player resolution."""

    def test_two_player_rock_beats_scissors(self):
        """Rock player wins 1-0."""
        res = resolve({"alice": R, "bob": S})
        assert res.outcome == "winner"
        assert res.winner == "alice"
        assert res.scores == {"alice": 1, "bob": 0}
        assert res.pair("alice", "bob").winner == "alice"

    def test_two_player_order_swap(self):
        """Swapping input order only changes which id is reported, not the logic."""
        a = resolve({"alice": R, "bob": S})
        b = resolve({"bob": S, "alice": R})
        assert a.winner == b.winner == "alice"
        assert a.scores == b.scores

    def test_pair_keys_are_unordered(self):
        res = resolve({"alice": P, "bob": R})
        assert res.pair("bob", "alice") is res.pair("alice", "bob")

    def test_three_players_paper_wins(self):
        """Rock, Rock, Paper: Paper scores 2 and wins."""
        res = resolve({"p1": R, "p2": R, "p3": P})
        assert res.scores == {"p1": 0, "p2": 0, "p3": 2}
        assert res.winner == "p3"
        assert res.pair("p1", "p2").is_tie
        assert res.pair("p1", "p3").winner == "p3"
        assert res.pair("p2", "p3").winner == "p3"
        assert res.ranking[0] == "p3"

    def test_all_three_choices_tie(self):
        """R, P, S: everyone scores 1, round ties among all three."""
        res = resolve({"a": R, "b": P, "c": S})
        assert res.outcome == "tie"
        assert res.winner is None
        assert res.tied == ["a", "b", "c"]

    def test_shared_top_score_ties(self):
        """Two Papers against one Rock tie at the top."""
        res = resolve({"a": P, "b": P, "c": R})
        assert res.outcome == "tie"
        assert res.tied == ["a", "b"]
        assert res.result_for("a") == "tie"
        assert res.result_for("c") == "loss"

    def test_equal_choices_tie(self):
        res = resolve({"a": S, "b": S})
        assert res.outcome == "tie"
        assert res.tied == ["a", "b"]

    def test_forfeited_excluded(self):
        """Forfeited players take no part in scoring."""
        res = resolve({"a": R, "b": S, "c": P}, forfeited=["c"])
        assert res.winner == "a"
        assert "c" not in res.scores
        assert res.forfeited == ["c"]
        assert res.result_for("c") == "loss"

    def test_insufficient_reveals(self):
        """Fewer than two valid reveals: no winner."""
        res = resolve({"a": R}, forfeited=["b"])
        assert res.outcome == "insufficient_reveals"
        assert res.winner is None
        assert res.forfeited == ["b"]

    def test_empty(self):
        assert resolve({}).outcome == "insufficient_reveals"

    def test_invalid_choice_rejected_before_resolution(self):
        """A malformed choice anywhere aborts the whole resolution."""
        with pytest.raises(ConfigurationError):
            resolve({"a": R, "b": 7})
        with pytest.raises(ConfigurationError):
            resolve({"a": R, "b": Choice.NONE})

    def test_to_dict(self):
        data = resolve({"a": R, "b": S}).to_dict()
        assert data["winner"] == "a"
        assert data["pairs"] == [{"players": ["a", "b"], "choices": [1, 3], "winner": "a"}]
