"""
Tests for strain analysis.

Covers: load balance, strain-recovery ratio, peak days, fatigue risk and
the increasing/decreasing trend labels.
"""
import pytest

from analytics.analyzer import MetricSeriesAnalyzer
from analytics.strain import STRAIN_SPEC


def days(strains):
    return [
        {"date": f"2024-03-{i + 1:02d}", "strain": s, "kilojoule": 9000, "score_state": "SCORED"}
        for i, s in enumerate(strains)
    ]


@pytest.fixture
def analyzer():
    return MetricSeriesAnalyzer(STRAIN_SPEC)


def summarize(analyzer, records, options=None):
    return analyzer.summarize([analyzer.chart_point(r) for r in records], options)


class TestStrainSummary:

    def test_optimal_load_without_recovery(self, analyzer):
        s = summarize(analyzer, days([10, 10, 12, 12]))
        assert s["average_strain"] == 11
        assert s["strain_trend"] == "increasing"
        assert s["weekly_strain_target"] == 77
        assert s["strain_balance"] == "optimal"
        assert s["total_workouts"] == 4
        assert s["recovery_strain_ratio"] == 1
        assert s["peak_performance_days"] == []
        assert s["fatigue_risk"] == "low"
        assert [i["title"] for i in s["insights"]] == ["Optimal Training Load", "Increasing Training Load"]
        assert s["recommendations"] == [
            "Monitor recovery closely as training load increases",
            "High workout frequency - ensure adequate recovery between sessions",
            "Use strain data to time high-intensity sessions with good recovery",
            "Aim for strain periodization throughout your training week",
        ]

    def test_recovery_strain_imbalance(self, analyzer):
        records = days([10, 10, 12, 12])
        recovery = [{"date": r["date"], "recovery_score": 40} for r in records]
        s = summarize(analyzer, records, {"recovery_data": recovery})
        assert s["recovery_strain_ratio"] == pytest.approx(0.73)
        assert "Recovery-Strain Imbalance" in [i["title"] for i in s["insights"]]

    def test_missing_recovery_days_count_as_neutral(self, analyzer):
        records = days([4, 4])
        recovery = [{"date": "2024-03-01", "recovery_score": 90}]
        s = summarize(analyzer, records, {"recovery_data": recovery})
        # (90 + 50) / 2 / (4 * 5)
        assert s["recovery_strain_ratio"] == 3.5
        assert "Good Recovery-Strain Balance" in [i["title"] for i in s["insights"]]

    def test_overreaching(self, analyzer):
        s = summarize(analyzer, days([17] * 8))
        assert s["strain_balance"] == "over"
        assert s["fatigue_risk"] == "high"
        assert "High Fatigue Risk" in [i["title"] for i in s["insights"]]
        assert "Consider reducing training intensity to prevent overtraining" in s["recommendations"]

    def test_peak_days_capped_at_five(self, analyzer):
        strains = [5, 20] * 7
        s = summarize(analyzer, days(strains))
        assert len(s["peak_performance_days"]) == 5
        assert s["peak_performance_days"][0] == "2024-03-02"

    def test_decreasing_load(self, analyzer):
        s = summarize(analyzer, days([14, 14, 10, 10]))
        assert s["strain_trend"] == "decreasing"

    @pytest.mark.parametrize("strains, expected", [
        ([10, 10, 11, 11], "increasing"),
        ([11, 11, 10, 10], "decreasing"),
        ([10, 10, 10.5, 10.5], "stable"),
    ])
    def test_trend_threshold_is_one_strain_point(self, analyzer, strains, expected):
        assert summarize(analyzer, days(strains))["strain_trend"] == expected

    def test_zero_strain_days_are_excluded(self, analyzer):
        s = summarize(analyzer, days([0, 0, 10]))
        assert s["average_strain"] == 10
        assert s["total_workouts"] == 1

    def test_no_days(self, analyzer):
        s = summarize(analyzer, [])
        assert s["average_strain"] == 0
        assert s["strain_trend"] == "stable"
        assert s["recovery_strain_ratio"] == 1
        assert s["recommendations"]
