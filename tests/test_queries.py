"""
Tests for curation query generation.
"""

import pytest

from repoverse.constants import CLUSTER_NAMES
from repoverse.curation import cluster_queries, facet_queries, facet_values, parse_facet


class TestClusterQueries:
    def test_groups_interleaved_before_truncation(self):
        assert cluster_queries("frontend", max_queries=8) == [
            "react stars:>50",
            "javascript frontend stars:>100",
            "react frontend stars:>100",
            "frontend tutorial stars:>100",
            "vue stars:>50",
            "javascript tutorial stars:>100",
            "react tutorial stars:>100",
            "frontend course stars:>100",
        ]

    @pytest.mark.parametrize("cluster", CLUSTER_NAMES)
    def test_every_cluster_respects_budget(self, cluster):
        queries = cluster_queries(cluster, max_queries=12)
        assert 0 < len(queries) <= 12
        assert len(queries) == len(set(queries))

    def test_unknown_cluster(self):
        with pytest.raises(KeyError):
            cluster_queries("quantum")


class TestFacetQueries:
    def test_language_facet(self):
        queries = facet_queries("language", "C++", max_queries=2)
        assert queries == ["language:c++ stars:>100", "language:c++ tutorial stars:>50"]

    def test_goal_facet(self):
        queries = facet_queries("goal", "learning-new-tech", max_queries=50)
        assert "walkthrough example stars:>50" in queries
        assert len(queries) == len(set(queries))

    def test_unknown_value(self):
        with pytest.raises(ValueError, match="Unknown language facet"):
            facet_queries("language", "COBOL")

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown facet kind"):
            facet_values("license")


class TestParseFacet:
    def test_case_insensitive_value(self):
        assert parse_facet("language:python") == ("language", "Python")
        assert parse_facet("project-type:Tutorial") == ("project-type", "tutorial")

    @pytest.mark.parametrize("text", ["language", "language:", "goal:world-peace", "color:red"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_facet(text)
