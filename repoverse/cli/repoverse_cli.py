"""
Repoverse CLI.

Operator entry point for curation runs, staleness sweeps and feed inspection.
"""

import argparse
import sys

from dotenv import load_dotenv

from repoverse.api import GitHubFetcher
from repoverse.cache import CacheInvalidationError, ResultCache
from repoverse.cli.formatters import format_json, format_output
from repoverse.curation import CurationJob, parse_facet, sweep_stale
from repoverse.db import db
from repoverse.logging import configure_logging
from repoverse.repositories import ClusterRepository, ProfileRepository
from repoverse.services import (
    WRITE_ACTIONS,
    FeedService,
    InteractionService,
    InvalidCursorError,
    ProfileNotFoundError,
    UnknownRepositoryError,
)

load_dotenv()


def _init_database():
    """Initialize database and create tables."""
    try:
        db.initialize()
        db.create_all_tables()
    except Exception as e:
        print(f"Error initializing database: {e}")
        raise


def _split(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def cmd_init_db(args):
    """Create tables and seed the cluster catalogue."""
    _init_database()
    with db.session() as session:
        clusters = ClusterRepository(session).ensure_catalogue()
    print(f"Database ready ({len(clusters)} clusters)")


def cmd_curate(args):
    """Run the curation job, fully or for one cluster/facet."""
    if args.run_async:
        from workers.tasks.curation_tasks import (
            curate_all_task,
            curate_cluster_task,
            curate_facet_task,
        )

        if args.cluster:
            result = curate_cluster_task.delay(args.cluster)
        elif args.facet:
            kind, value = parse_facet(args.facet)
            result = curate_facet_task.delay(kind, value)
        else:
            result = curate_all_task.delay()
        print(f"Queued curation task {result.id}")
        return

    _init_database()
    job = CurationJob(GitHubFetcher(), top_k=args.top_k)

    if args.cluster:
        report = job.run_cluster(args.cluster)
    elif args.facet:
        kind, value = parse_facet(args.facet)
        report = job.run_facet(kind, value)
    else:
        report = job.run_all(include_facets=not args.no_facets)

    print(format_json(report.to_dict()))
    if report.failed_ids:
        print(f"{len(report.failed_ids)} repositories failed to persist", file=sys.stderr)


def cmd_sweep(args):
    """Delete repositories past the staleness horizon."""
    _init_database()
    result = sweep_stale(args.horizon_days)
    print(f"Removed {result['removed']} stale repositories (horizon {result['horizon_days']} days)")


def cmd_profile(args):
    """Create or update a user's preference profile."""
    _init_database()
    with db.session() as session:
        profile = ProfileRepository(session).upsert(
            args.user_id,
            primary_cluster=args.primary,
            secondary_clusters=_split(args.secondary),
            tech_stack=_split(args.tech),
            goals=_split(args.goals),
            project_types=_split(args.project_types),
            interests=_split(args.interests),
            experience_level=args.experience,
        )
        print(format_json(profile.to_dict()))


def cmd_feed(args):
    """Print one feed page for a user."""
    _init_database()
    feed = FeedService(ResultCache())
    try:
        page = feed.feed_for_user(args.user_id, cursor=args.cursor, page_size=args.page_size)
    except (ProfileNotFoundError, InvalidCursorError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(format_output(page.items, args.format, verbose=args.verbose))
    if page.next_cursor:
        print(f"Next cursor: {page.next_cursor}")


def cmd_interact(args):
    """Record an interaction for a user."""
    _init_database()
    interactions = InteractionService(ResultCache())
    try:
        changed = interactions.apply(args.user_id, args.repo_id, args.action)
    except (UnknownRepositoryError, CacheInvalidationError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"{args.action} recorded" if changed else f"{args.action}: no change")


def cmd_clusters(args):
    """List the cluster catalogue with counts."""
    _init_database()
    with db.session() as session:
        clusters = [c.to_dict() for c in ClusterRepository(session).list_active()]

    if args.format == "json":
        print(format_json(clusters))
        return
    for cluster in clusters:
        curated = cluster["last_curated_at"] or "never"
        print(f"{cluster['name']:<14} {cluster['repo_count']:>6}  curated: {curated}")


def main():
    """Main entry point with CLI interface."""
    configure_logging(role="cli")
    parser = argparse.ArgumentParser(
        description="Repoverse - Curated GitHub repository discovery"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create tables and seed clusters")

    curate_parser = subparsers.add_parser("curate", help="Run the curation job")
    target = curate_parser.add_mutually_exclusive_group()
    target.add_argument("--cluster", help="Curate a single cluster")
    target.add_argument("--facet", help="Curate a single facet, e.g. language:Python")
    curate_parser.add_argument("--top-k", type=int, help="Memberships kept per cluster")
    curate_parser.add_argument("--no-facets", action="store_true", help="Skip facet passes")
    curate_parser.add_argument(
        "--async", dest="run_async", action="store_true", help="Queue as a Celery task"
    )

    sweep_parser = subparsers.add_parser("sweep", help="Delete stale repositories")
    sweep_parser.add_argument("--horizon-days", type=int, help="Override staleness horizon")

    profile_parser = subparsers.add_parser("profile", help="Create or update a preference profile")
    profile_parser.add_argument("user_id")
    profile_parser.add_argument("--primary", help="Primary cluster")
    profile_parser.add_argument("--secondary", help="Comma-separated secondary clusters")
    profile_parser.add_argument("--tech", help="Comma-separated tech stack")
    profile_parser.add_argument("--goals", help="Comma-separated goals")
    profile_parser.add_argument("--project-types", help="Comma-separated project types")
    profile_parser.add_argument("--interests", help="Comma-separated interests")
    profile_parser.add_argument("--experience", help="Experience level")

    feed_parser = subparsers.add_parser("feed", help="Show a feed page for a user")
    feed_parser.add_argument("user_id")
    feed_parser.add_argument("--cursor", help="Cursor from a previous page")
    feed_parser.add_argument("--page-size", type=int)
    feed_parser.add_argument("--format", choices=["text", "json"], default="text")
    feed_parser.add_argument("--verbose", "-v", action="store_true")

    interact_parser = subparsers.add_parser("interact", help="Record a user interaction")
    interact_parser.add_argument("user_id")
    interact_parser.add_argument("repo_id", type=int)
    interact_parser.add_argument("action", choices=WRITE_ACTIONS)

    clusters_parser = subparsers.add_parser("clusters", help="List clusters")
    clusters_parser.add_argument("--format", choices=["text", "json"], default="text")

    args = parser.parse_args()

    commands = {
        "init-db": cmd_init_db,
        "curate": cmd_curate,
        "sweep": cmd_sweep,
        "profile": cmd_profile,
        "feed": cmd_feed,
        "interact": cmd_interact,
        "clusters": cmd_clusters,
    }

    if args.command in commands:
        commands[args.command](args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
