"""
Tests for search item normalization, tag derivation and the quality filter.
"""

from datetime import timedelta, timezone

import pytest

from repoverse.parsing import (
    REJECT_RULES,
    check_repo_quality,
    curation_quality_score,
    derive_tags,
    normalize_repo,
    parse_timestamp,
    rule_reason,
)

from factories import NOW, api_item


def _record(**overrides):
    return normalize_repo(api_item(1, **overrides))


class TestNormalizeRepo:
    def test_maps_api_fields(self):
        record = normalize_repo(api_item(42, name="widgets", owner="acme", topics=["React", "UI"]))

        assert record["id"] == 42
        assert record["full_name"] == "acme/widgets"
        assert record["owner_login"] == "acme"
        assert record["stars"] == 500
        assert record["topics"] == ["react", "ui"]
        assert record["license"] == "MIT License"
        assert record["pushed_at"].tzinfo is not None

    def test_missing_id_is_dropped(self):
        item = api_item(1)
        del item["id"]
        assert normalize_repo(item) is None

    def test_blank_fields_become_none(self):
        item = api_item(1, description="   ", license_name=None)
        item["homepage"] = ""
        record = normalize_repo(item)

        assert record["description"] is None
        assert record["license"] is None
        assert record["homepage_url"] is None

    def test_parse_timestamp(self):
        parsed = parse_timestamp("2024-05-01T10:00:00Z")
        assert parsed.tzinfo == timezone.utc
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None


class TestDeriveTags:
    def test_order_and_dedup(self):
        record = {
            "name": "react-hooks-course",
            "description": "Learn React hooks by building apps",
            "language": "JavaScript",
            "topics": ["react", "hooks"],
        }
        assert derive_tags(record, "frontend") == [
            "javascript",
            "react",
            "hooks",
            "tutorial",
            "course",
            "learn",
            "full-app",
            "application",
            "frontend",
        ]

    def test_framework_detection_respects_boundaries(self):
        record = {"name": "x", "description": "Deploy with Docker Compose; not dockerized-ish", "topics": []}
        tags = derive_tags(record)
        assert "docker" in tags

        record = {"name": "x", "description": "Runs on qtile window manager", "topics": []}
        assert "qt" not in derive_tags(record)

    def test_multiword_framework_variants(self):
        record = {"name": "rn-starter", "description": "", "topics": ["react-native"]}
        assert "react native" in derive_tags(record)

    def test_language_alias(self):
        assert derive_tags({"language": "ts", "topics": []})[0] == "typescript"

    def test_capped(self):
        record = {"topics": [f"topic-{i}" for i in range(40)]}
        assert len(derive_tags(record)) == 20


class TestQualityFilter:
    def test_good_candidate_passes(self):
        assert check_repo_quality(_record(), 50, 365, NOW) == (True, [])

    @pytest.mark.parametrize(
        "overrides,rule",
        [
            ({"stars": 10}, "min_stars"),
            ({"description": ""}, "description"),
            ({"description": "Drag and drop builder, no-code websites library"}, "no_code"),
            ({"description": "An AI agent framework library for automating tasks"}, "ai_agent"),
            ({"description": "A curated list of awesome React resources", "stars": 5000}, "awesome_list"),
            (
                {
                    "owner": "facebook",
                    "stars": 20000,
                    "description": "A JavaScript library for building user interfaces",
                },
                "corporate",
            ),
            ({"description": "Thin wrapper for the Stripe API", "stars": 200}, "wrapper"),
            ({"pushed_days_ago": 400}, "stale"),
        ],
    )
    def test_rejections(self, overrides, rule):
        passed, reasons = check_repo_quality(_record(**overrides), 50, 365, NOW)
        assert not passed
        assert rule in reasons

    def test_small_awesome_list_allowed(self):
        record = _record(description="A curated list of awesome React resources", stars=800)
        assert check_repo_quality(record, 50, 365, NOW) == (True, [])

    def test_corporate_tutorial_allowed(self):
        record = _record(
            owner="google", stars=30000, description="Codelab tutorial for building Android apps"
        )
        assert check_repo_quality(record, 50, 365, NOW)[0] is True

    def test_code_indicator_required_below_500_stars(self):
        record = _record(description="Personal dotfiles and shell configuration", stars=120, topics=[])
        assert check_repo_quality(record, 50, 365, NOW) == (False, ["code_indicator"])

    def test_every_failing_rule_reported(self):
        record = _record(stars=10, description="", topics=[])
        passed, reasons = check_repo_quality(record, 50, 365, NOW)
        assert not passed
        assert {"min_stars", "description", "code_indicator"} <= set(reasons)

    def test_missing_push_date_is_stale(self):
        record = _record()
        record["pushed_at"] = None
        assert "stale" in check_repo_quality(record, 50, 365, NOW)[1]

    def test_horizon_is_configurable(self):
        record = _record(pushed_days_ago=200)
        assert check_repo_quality(record, 50, 365, NOW)[0] is True
        assert "stale" in check_repo_quality(record, 50, 180, NOW)[1]

    def test_rule_names_unique(self):
        names = [rule.name for rule in REJECT_RULES]
        assert len(names) == len(set(names))

    def test_rule_reason(self):
        for rule in REJECT_RULES:
            assert rule_reason(rule.name) == rule.reason
        assert rule_reason("not-a-rule") == "not-a-rule"


@pytest.mark.parametrize(
    "stars,expected",
    [(100, 100.0), (10000, 100.0), (10001, 80.0), (50000, 80.0), (50001, 30.0), (75, 70.0), (10, 50.0), (5, 30.0)],
)
def test_curation_quality_score(stars, expected):
    assert curation_quality_score(stars) == expected


def test_pushed_at_shift_is_relative_to_now():
    record = _record(pushed_days_ago=10)
    assert NOW - record["pushed_at"] == timedelta(days=10)
