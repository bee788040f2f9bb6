"""
Tests for result aggregation.
"""

from oval_runner.core.aggregator import Disposition, ResultAggregator, disposition
from oval_runner.models import Verdict


class TestDisposition:
    """Tests for the pass/fail policy."""

    def test_sequences(self):
        assert disposition([]) is Disposition.PASS
        assert disposition([Verdict.TRUE, Verdict.ERROR, Verdict.NOT_APPLICABLE]) is Disposition.PASS
        assert disposition([Verdict.TRUE, Verdict.FALSE]) is Disposition.FAIL
        assert disposition([Verdict.UNKNOWN]) is Disposition.FAIL

    def test_counts(self):
        """Zero counts do not fail a run."""
        assert disposition({Verdict.TRUE: 3, Verdict.FALSE: 0}) is Disposition.PASS
        assert disposition({Verdict.TRUE: 3, Verdict.UNKNOWN: 1}) is Disposition.FAIL


class TestResultAggregator:
    """Tests for ResultAggregator."""

    def test_consume_passes_pairs_through(self):
        aggregator = ResultAggregator()
        stream = [("def:1", Verdict.TRUE), ("def:2", Verdict.FALSE), ("def:3", Verdict.TRUE)]

        assert list(aggregator.consume(iter(stream))) == stream
        assert aggregator.true == 2
        assert aggregator.false == 1
        assert aggregator.total == 3
        assert aggregator.disposition() is Disposition.FAIL

    def test_counts_cover_every_verdict(self):
        aggregator = ResultAggregator.from_verdicts([Verdict.NOT_APPLICABLE, Verdict.ERROR])

        assert list(aggregator.counts) == list(Verdict)
        assert aggregator.count(Verdict.NOT_APPLICABLE) == 1
        assert aggregator.disposition() is Disposition.PASS

    def test_report_lines(self):
        aggregator = ResultAggregator.from_verdicts([Verdict.TRUE, Verdict.TRUE, Verdict.FALSE])

        lines = aggregator.report_lines()

        assert lines[0] == "===== REPORT ====="
        assert "TRUE:           2" in lines
        assert "FALSE:          1" in lines
        assert "NOT APPLICABLE: 0" in lines
        assert len(lines) == 1 + len(Verdict)
