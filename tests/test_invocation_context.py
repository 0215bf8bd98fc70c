"""
Tests for the per-invocation context.
"""
import pytest

from invocation_context import Caller, InvocationContext


class TestInvocationContext:

    def test_caller(self, context):
        assert context.get_current_caller() == Caller(id="u1", display_name="Ada")
        assert context.get_current_caller().label() == "Ada"
        assert Caller(id="u2").label() == "u2"

    def test_cache_round_trip(self, context):
        assert context.get_cached_data("sleep") is None
        assert not context.has_cached_data("sleep")
        context.set_cached_data("sleep", [{"date": "2024-01-01"}])
        assert context.has_cached_data("sleep")
        assert context.get_cached_data("sleep") == [{"date": "2024-01-01"}]

    def test_unknown_domain_rejected(self, context):
        with pytest.raises(ValueError):
            context.set_cached_data("mood", [])
        with pytest.raises(ValueError):
            context.get_cached_data("mood")

    def test_fresh_contexts_share_nothing(self):
        a = InvocationContext(Caller(id="a"))
        b = InvocationContext(Caller(id="b"))
        a.set_cached_data("strain", [1])
        assert b.get_cached_data("strain") is None
        assert "strain" in repr(a)
