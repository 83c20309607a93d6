"""
Tests for cache policy resolution and cache key construction.
"""
import pytest

from gateway.cache.core import CachePolicy, EntityKind
from gateway.cache.keys import build_key, hash_params, normalize_route
from gateway.cache.policies import POLICY_TABLE, is_completed, is_live, resolve


# =============================================================================
# Policy resolution
# =============================================================================

class TestResolve:
    """TTL and tags per document kind."""

    @pytest.mark.parametrize(
        "status,ttl",
        [
            ("in_progress", 30),
            ("live", 30),
            ("completed", 3600),
            ("scheduled", 600),
            (None, 600),
        ],
    )
    def test_match_details_ttl_follows_status(self, status, ttl):
        policy = resolve(EntityKind.MATCH_DETAILS, status, match_id=1)
        assert policy.ttl == ttl

    def test_status_is_case_insensitive(self):
        assert resolve(EntityKind.MATCH_DETAILS, "COMPLETED").ttl == 3600
        assert resolve(EntityKind.MATCH_DETAILS, " In_Progress ").ttl == 30

    def test_live_matches_are_never_cacheable(self):
        policy = resolve(EntityKind.LIVE_MATCHES)
        assert policy.ttl == 0
        assert not policy.cacheable

    def test_match_tags_include_match_and_tournament(self):
        policy = resolve(EntityKind.MATCH_DETAILS, "scheduled", match_id=42, tournament_id=7)
        assert policy.tags == frozenset({"matches", "match:42", "tournament:7"})

    def test_tags_with_missing_ids_are_skipped(self):
        policy = resolve(EntityKind.MATCH_DETAILS, "scheduled", match_id=42)
        assert "match:42" in policy.tags
        assert not any("tournament" in tag for tag in policy.tags)

    def test_tags_with_none_ids_are_skipped(self):
        policy = resolve(EntityKind.TEAM_OVERVIEW, team_id=3, tournament_id=None)
        assert policy.tags == frozenset({"teams", "team:3"})

    def test_tournament_details_carry_standings_tag(self):
        policy = resolve(EntityKind.TOURNAMENT_DETAILS, tournament_id=5)
        assert "tournament:5:standings" in policy.tags

    def test_every_kind_has_a_policy(self):
        for kind in EntityKind:
            assert kind in POLICY_TABLE

    def test_status_helpers(self):
        assert is_live("in_progress")
        assert not is_live("completed")
        assert is_completed("completed")
        assert not is_completed(None)

    def test_policy_cacheable(self):
        assert CachePolicy(ttl=10).cacheable
        assert not CachePolicy(ttl=0).cacheable
        assert not CachePolicy(ttl=-1).cacheable


# =============================================================================
# Keys
# =============================================================================

class TestKeys:

    def test_param_order_does_not_matter(self):
        first = build_key("matches", {"page": 1, "limit": 10}, prefix="gateway")
        second = build_key("matches", {"limit": 10, "page": 1}, prefix="gateway")
        assert first == second

    def test_different_params_give_different_keys(self):
        first = build_key("matches", {"page": 1}, prefix="gateway")
        second = build_key("matches", {"page": 2}, prefix="gateway")
        assert first != second

    def test_none_params_are_ignored(self):
        assert hash_params({"page": 1, "status": None}) == hash_params({"page": 1})
        assert build_key("matches", {"status": None}, prefix="gateway") == "gateway:matches"

    def test_key_without_params(self):
        assert build_key("match_details:42", prefix="gateway") == "gateway:match_details:42"

    def test_empty_prefix(self):
        assert build_key("tournaments", prefix="") == "tournaments"

    def test_normalize_route(self):
        assert normalize_route("matches.details/42") == "matches:details:42"
        assert normalize_route(":standings:") == "standings"
