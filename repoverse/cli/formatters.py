# Output formatters for CLI listings

import json


def format_text(repos: list[dict], verbose: bool = False) -> str:
    """
    Format repositories as plain text.

    Returns - Formatted text string
    """
    if not repos:
        return "No repositories found.\n"

    output = []
    for i, repo in enumerate(repos, 1):
        output.append(f"\n{i}. {repo.get('full_name', 'N/A')}  ★ {repo.get('stars', 0)}")
        output.append(f"   URL: {repo.get('html_url', 'N/A')}")
        if verbose:
            output.append(f"   Language: {repo.get('language') or 'N/A'}")
            output.append(f"   Cluster: {repo.get('primary_cluster', 'N/A')}")
            scores = repo.get("scores") or {}
            output.append(f"   Score: {scores.get('recommendation', 'N/A')}")
            feed = repo.get("feed")
            if feed:
                output.append(f"   Tier: {feed.get('source')} ({feed.get('cluster')})")
        output.append("")

    return "\n".join(output)


def format_json(data) -> str:
    """
    Format any JSON-serializable result.

    Returns - JSON string
    """
    return json.dumps(data, indent=2, default=str)


def format_output(repos: list[dict], fmt: str = "text", verbose: bool = False) -> str:
    """Format repositories in the requested format."""
    if fmt == "json":
        return format_json(repos)
    return format_text(repos, verbose=verbose)
