"""
Tests for the synopsis builder.

Covers: per-kind templates, subject/caller wording and the no-workout text.
"""
from artifact_schema import ArtifactKind
from invocation_context import Caller
from pipeline.summary_builder import build_synopsis

ADA = Caller(id="u1", display_name="Ada")


class TestBuildSynopsis:

    def test_recovery(self):
        text = build_synopsis(
            ArtifactKind.RECOVERY,
            {
                "average_recovery": 53.0,
                "recovery_trend": "improving",
                "risk_factors": ["a", "b", "c"],
                "recommendations": ["1", "2", "3", "4"],
            },
            ADA,
        )
        assert text == (
            "Completed recovery analysis for Ada (u1). Average recovery: 53%, trend: improving. "
            "Found 3 risk factors and 4 recommendations."
        )

    def test_caller_without_name_uses_id(self):
        text = build_synopsis(
            ArtifactKind.STRAIN,
            {"average_strain": 11.4, "strain_trend": "stable", "strain_balance": "optimal",
             "fatigue_risk": "low", "recommendations": []},
            Caller(id="u9"),
        )
        assert text.startswith("Completed strain analysis for u9 (u9).")
        assert "Average strain: 11.4" in text

    def test_sleep(self):
        text = build_synopsis(
            ArtifactKind.SLEEP,
            {"average_sleep_performance": 83, "average_sleep_duration": 7.5, "sleep_trend": "improving",
             "sleep_debt": 2.0, "recommendations": ["x", "y"]},
            ADA,
        )
        assert "average duration: 7.5h" in text
        assert "Sleep debt: 2h." in text

    def test_no_workouts(self):
        text = build_synopsis(ArtifactKind.WORKOUT, {"total_workouts": 0}, ADA)
        assert text == "No workout data found for Ada (u1) in the specified period."

    def test_workouts(self):
        text = build_synopsis(
            ArtifactKind.WORKOUT,
            {"total_workouts": 4, "workout_frequency": 2.0, "most_frequent_sport": "Sport 1",
             "performance_trend": "improving", "recommendations": ["a"]},
            ADA,
        )
        assert "4 workouts (2 per week), most frequent sport: Sport 1" in text

    def test_burn_rate_names_company_and_user(self):
        text = build_synopsis(
            ArtifactKind.BURN_RATE,
            {"trend": "declining", "average_runway": 2.5, "alerts": ["x", "y"], "recommendations": ["z"]},
            ADA,
            subject="Acme",
        )
        assert text == (
            "Completed burn rate analysis for Acme (User: Ada - u1). The analysis shows a declining "
            "trend with an average runway of 2.5 months. 2 alerts and 1 recommendations have been generated."
        )
