"""Unit tests for fee integrity and fairness analysis."""

import math

import pytest

from fairplay.errors import ConfigurationError, VerificationError
from fairplay.models.fees import FeeRecord
from fairplay.services.audit_logger import AuditLogger
from fairplay.services.fee_analyzer import analyze_fairness, analyze_fees, calculate_fee


def exact_batch(rate, wagers=(100.0, 200.0, 300.0)):
    return [FeeRecord(wagered=w, fee=w * rate) for w in wagers]


class TestAnalyzeFees:
    """Test analyze_fees()."""

    def test_empty_batch(self):
        """No records: zero totals and a well-defined verdict."""
        report = analyze_fees([], 0.01)
        assert report.total_wagered == 0
        assert report.actual_rate == 0
        assert report.is_correct is False
        assert not math.isnan(report.difference_percentage)

    def test_exact_fees(self):
        """Fees of exactly wager * rate are correct with zero difference."""
        report = analyze_fees(exact_batch(0.01), 0.01)
        assert report.is_correct is True
        assert report.difference_percentage == 0
        assert report.total_wagered == 600.0
        assert report.total_fees == pytest.approx(6.0)
        assert report.anomalies == []

    def test_within_tolerance(self):
        records = [FeeRecord(wagered=1000.0, fee=10.3)]
        report = analyze_fees(records, 0.01, tolerance=0.05)
        assert report.is_correct
        assert report.difference_percentage == pytest.approx(3.0)

    def test_outside_tolerance(self):
        records = [FeeRecord(wagered=1000.0, fee=12.0)]
        report = analyze_fees(records, 0.01, tolerance=0.05)
        assert not report.is_correct
        assert report.difference_percentage == pytest.approx(20.0)
        assert [a.kind for a in report.anomalies] == ["rate_out_of_tolerance"]

    def test_inputs_not_mutated(self):
        records = exact_batch(0.01)
        before = [r.to_dict() for r in records]
        analyze_fees(records, 0.01)
        assert [r.to_dict() for r in records] == before

    def test_anomalies(self):
        records = [
            FeeRecord(wagered=100.0, fee=-1.0, signature="neg"),
            FeeRecord(wagered=100.0, fee=150.0, signature="big"),
            FeeRecord(wagered=100.0, fee=1.0, pre_balance=10.0, post_balance=10.5, signature="bal"),
            FeeRecord(wagered=0.0, fee=0.0, signature="zero"),
        ]
        report = analyze_fees(records, 0.01)
        kinds = {(a.signature, a.kind) for a in report.anomalies}
        assert ("neg", "negative_fee") in kinds
        assert ("big", "fee_exceeds_wager") in kinds
        assert ("bal", "balance_mismatch") in kinds
        assert ("zero", "non_positive_wager") in kinds
        assert report.record_count == 4
        assert report.total_wagered == 300.0

    def test_fee_on_zero_wager_counts_toward_totals(self):
        """A fee charged without a wager is over-collection, not noise."""
        records = [FeeRecord(wagered=1000.0, fee=10.0), FeeRecord(wagered=0.0, fee=50.0)]
        report = analyze_fees(records, 0.01)
        assert report.total_fees == 60.0
        assert report.total_wagered == 1000.0
        assert report.is_correct is False
        assert report.difference_percentage == pytest.approx(500.0)
        assert [a.kind for a in report.anomalies] == ["non_positive_wager"]

    def test_consistent_balances_are_clean(self):
        records = [FeeRecord(wagered=100.0, fee=1.0, pre_balance=5.0, post_balance=6.0)]
        assert analyze_fees(records, 0.01).anomalies == []

    @pytest.mark.parametrize("rate", [0, -0.01])
    def test_bad_expected_rate(self, rate):
        with pytest.raises(ConfigurationError):
            analyze_fees(exact_batch(0.01), rate)

    def test_calculate_fee(self):
        """Integer amounts floor like the program; floats are proportional."""
        assert calculate_fee(1_000_000) == 10_000
        assert calculate_fee(150) == 1
        assert calculate_fee(2.0) == pytest.approx(0.02)


class TestAnalyzeFairness:
    """Test analyze_fairness()."""

    def test_balanced(self):
        games = [
            {"player_choice": 1, "opponent_choice": 3, "result": "win"},
            {"player_choice": 2, "opponent_choice": 1, "result": "win"},
            {"player_choice": 3, "opponent_choice": 2, "result": "win"},
            {"player_choice": 1, "opponent_choice": 1, "result": "tie"},
        ]
        report = analyze_fairness(games)
        assert report.total_games == 4
        assert (report.rock_wins, report.paper_wins, report.scissors_wins) == (1, 1, 1)
        assert report.ties == 1
        assert report.tie_percentage == 25.0
        assert report.is_balanced

    def test_loss_credits_opponent_choice(self):
        games = [{"player_choice": 3, "opponent_choice": 1, "result": "loss"}]
        report = analyze_fairness(games)
        assert report.rock_wins == 1
        assert not report.is_balanced

    def test_wrong_recorded_result(self):
        games = [{"player_choice": 1, "opponent_choice": 2, "result": "win"}]
        with pytest.raises(VerificationError):
            analyze_fairness(games)

    def test_empty(self):
        report = analyze_fairness([])
        assert report.total_games == 0
        assert report.max_variance == 0.0


class TestAuditLogger:
    """Test report persistence."""

    def test_save_and_get(self, tmp_path):
        audit = AuditLogger(str(tmp_path))
        report = analyze_fees(exact_batch(0.01), 0.01)
        report_id = audit.save_report(report, label="nightly")

        stored = audit.get_report(report_id)
        assert stored["label"] == "nightly"
        assert stored["report"]["is_correct"] is True
        assert stored["report"]["record_count"] == 3

    def test_missing_report(self, tmp_path):
        assert AuditLogger(str(tmp_path)).get_report("fees_0_dead") is None

    def test_list_reports(self, tmp_path):
        audit = AuditLogger(str(tmp_path))
        audit.save_report(analyze_fees(exact_batch(0.01), 0.01))
        audit.save_report(analyze_fees([FeeRecord(wagered=100.0, fee=5.0)], 0.01))
        (tmp_path / "broken.json").write_text("{not json")

        reports = audit.list_reports()
        assert len(reports) == 2
        assert sorted(r["is_correct"] for r in reports) == [False, True]
        assert len(audit.list_reports(limit=1)) == 1
