"""
Tests for workout analysis.

Covers: weekly frequency from the date range, sport grouping, intensity
distribution, recovery adequacy/timing and the no-workout answer.
"""
import pytest

from analytics.analyzer import MetricSeriesAnalyzer
from analytics.workout import WORKOUT_SPEC, analysis_days, sport_label

MINUTE = 60_000
RANGE = {"start": "2024-04-01", "end": "2024-04-15"}


def workout(day, strain, sport_id=1, minutes=45, distance=None):
    return {
        "date": f"2024-04-{day:02d}",
        "workout_id": f"w{day}",
        "sport_id": sport_id,
        "strain": strain,
        "duration": minutes * MINUTE,
        "distance_meters": distance,
        "score_state": "SCORED",
    }


WORKOUTS = [
    workout(1, 6, sport_id=1, distance=5000),
    workout(2, 10, sport_id=1, distance=7000),
    workout(3, 16, sport_id=2),
    workout(4, 12, sport_id=None),
]


@pytest.fixture
def analyzer():
    return MetricSeriesAnalyzer(WORKOUT_SPEC)


def summarize(analyzer, records, options=None):
    opts = {"date_range": RANGE}
    opts.update(options or {})
    return analyzer.summarize([analyzer.chart_point(r) for r in records], opts)


class TestHelpers:

    def test_sport_label(self):
        assert sport_label(45) == "Sport 45"
        assert sport_label(None) == "Unknown"
        assert sport_label(0) == "Unknown"

    def test_analysis_days_from_range(self):
        assert analysis_days(RANGE, []) == 14
        assert analysis_days({"start": "2024-04-01", "end": "2024-04-01"}, []) == 1

    def test_analysis_days_from_points(self):
        pts = [{"date": "2024-04-01"}, {"date": "2024-04-10"}]
        assert analysis_days(None, pts) == 9


class TestWorkoutSummary:

    def test_mixed_week(self, analyzer):
        s = summarize(analyzer, WORKOUTS)
        assert s["total_workouts"] == 4
        assert s["average_workout_strain"] == 11
        assert s["average_workout_duration"] == 45
        assert s["workout_frequency"] == 2
        assert s["most_frequent_sport"] == "Sport 1"
        assert s["intensity_distribution"] == {"low": 25, "moderate": 50, "high": 25}
        assert s["performance_trend"] == "improving"
        assert s["recovery_adequacy"] == "adequate"
        assert s["optimal_workout_timing"] == []
        assert s["recommendations"] == [
            "Consider increasing workout frequency to 3-5 sessions per week",
            "Use recovery data to time high-intensity workouts optimally",
            "Maintain variety in workout types and intensities",
        ]
        assert s["insights"][0] == {
            "title": "Low Workout Frequency",
            "description": "You're averaging 2.0 workouts per week",
            "impact": "neutral",
            "confidence": 0.9,
        }

    def test_sport_specific_insights(self, analyzer):
        s = summarize(analyzer, WORKOUTS)
        by_sport = {i["sport"]: i for i in s["sport_specific_insights"]}
        assert list(by_sport) == ["Sport 1", "Sport 2", "Unknown"]
        assert by_sport["Sport 1"]["frequency"] == 2
        assert by_sport["Sport 1"]["average_strain"] == 8
        assert by_sport["Sport 1"]["average_distance"] == 6
        assert by_sport["Sport 2"]["average_distance"] is None

    def test_recovery_timing(self, analyzer):
        recovery = [
            {"date": "2024-04-03", "recovery_score": 80},
            {"date": "2024-04-04", "recovery_score": 75},
        ]
        s = summarize(analyzer, WORKOUTS, {"recovery_data": recovery})
        assert s["recovery_adequacy"] == "adequate"
        assert s["optimal_workout_timing"] == ["2024-04-03", "2024-04-04"]

    def test_insufficient_recovery(self, analyzer):
        recovery = [{"date": w["date"], "recovery_score": 30} for w in WORKOUTS]
        s = summarize(analyzer, WORKOUTS, {"recovery_data": recovery})
        assert s["recovery_adequacy"] == "insufficient"
        assert "Your recovery may not be adequate for your training load" in s["recommendations"]

    @pytest.mark.parametrize("strains, expected", [
        ((10, 10, 11, 11), "improving"),
        ((11, 11, 10, 10), "declining"),
        ((10, 10, 10.5, 10.5), "stable"),
    ])
    def test_trend_threshold_is_one_strain_point(self, analyzer, strains, expected):
        records = [workout(i + 1, s) for i, s in enumerate(strains)]
        assert summarize(analyzer, records)["performance_trend"] == expected

    def test_zero_strain_workouts_still_count(self, analyzer, date_range):
        records = [workout(1, 0), workout(2, 12)]
        s = summarize(analyzer, records)
        assert s["total_workouts"] == 2
        meta = analyzer.metadata(records, {"date_range": date_range}, "u1")
        assert meta["total_workouts"] == 2
        assert meta["valid_data_points"] == 1


class TestNoWorkouts:

    def test_dedicated_empty_answer(self, analyzer):
        s = summarize(analyzer, [])
        assert s["total_workouts"] == 0
        assert s["performance_trend"] == "stable"
        assert s["recommendations"] == ["Start incorporating regular workouts to improve fitness"]
        assert s["insights"] == [{
            "title": "No Workout Data",
            "description": "No workouts found in the analysis period",
            "impact": "neutral",
            "confidence": 1,
        }]
