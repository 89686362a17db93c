"""
Pytest fixtures for Repoverse tests.

Every test gets a fresh in-memory SQLite database behind the global `db`
manager, seeded with the cluster catalogue, and a fresh ResultCache.
"""

import os
import sys
from datetime import timedelta

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from repoverse.cache import ResultCache  # noqa: E402
from repoverse.db import db  # noqa: E402
from repoverse.repositories import (  # noqa: E402
    ClusterRepository,
    MembershipRepository,
    ProfileRepository,
    RepoRepository,
)
from repoverse.scoring import ScoreSet  # noqa: E402

from factories import NOW  # noqa: E402


@pytest.fixture
def now():
    return NOW


@pytest.fixture(scope="function")
def test_db():
    """Fresh in-memory database through the global manager."""
    db.reset()
    db.initialize("sqlite://")
    db.create_all_tables()
    with db.session() as session:
        ClusterRepository(session).ensure_catalogue()

    yield db

    db.drop_all_tables()
    db.reset()


@pytest.fixture
def test_session(test_db):
    with test_db.session() as session:
        yield session


@pytest.fixture
def cache():
    return ResultCache()


@pytest.fixture
def add_repo(test_db):
    """
    Insert a repository plus its membership in one cluster.

    Returns a function; keyword arguments override the defaults.
    """

    def _add(
        repo_id: int,
        cluster: str = "frontend",
        recommendation: float = 50.0,
        rotation: int = 0,
        tags: list[str] | None = None,
        quality: float = 100.0,
        **fields,
    ) -> int:
        record = {
            "id": repo_id,
            "name": fields.pop("name", f"repo-{repo_id}"),
            "full_name": fields.pop("full_name", f"octo/repo-{repo_id}"),
            "description": fields.pop("description", "React tutorial to learn hooks"),
            "owner_login": fields.pop("owner_login", "octo"),
            "stars": fields.pop("stars", 500),
            "language": fields.pop("language", "JavaScript"),
            "topics": fields.pop("topics", ["react", "tutorial"]),
            "pushed_at": fields.pop("pushed_at", NOW - timedelta(days=3)),
            "created_at": fields.pop("created_at", NOW - timedelta(days=400)),
            **fields,
        }
        scores = ScoreSet(
            popularity=recommendation,
            activity=recommendation,
            freshness=recommendation,
            quality=recommendation,
            trending=recommendation,
            recommendation=recommendation,
        )
        with db.session() as session:
            RepoRepository(session).upsert(record, scores, cluster or "general")
            if cluster is not None:
                MembershipRepository(session).upsert(
                    cluster_name=cluster,
                    repo_id=repo_id,
                    tags=tags if tags is not None else list(record["topics"]),
                    quality_score=quality,
                    tag_overlap=0,
                    combined_score=quality,
                    rotation_priority=rotation,
                )
        return repo_id

    return _add


@pytest.fixture
def add_membership(test_db):
    """Add an existing repository to another cluster."""

    def _add(repo_id: int, cluster: str, tags: list[str] | None = None, rotation: int = 0) -> None:
        with db.session() as session:
            MembershipRepository(session).upsert(
                cluster_name=cluster,
                repo_id=repo_id,
                tags=tags or [],
                quality_score=100.0,
                tag_overlap=0,
                combined_score=100.0,
                rotation_priority=rotation,
            )

    return _add


@pytest.fixture
def make_profile(test_db):
    def _make(user_id: str = "user-1", **fields):
        with db.session() as session:
            return ProfileRepository(session).upsert(user_id, **fields)

    return _make
