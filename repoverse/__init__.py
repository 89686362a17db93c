"""
Repoverse Core Library.

Curated GitHub repository discovery: an offline curation pipeline that
ingests, scores and clusters repositories, and an online feed that serves
personalized, de-duplicated pages of them.

Usage:
    # Database
    from repoverse.db import db, get_db
    from repoverse.models import Repo, Cluster, UserPreferenceProfile

    # Config
    from repoverse.config import get_settings, Settings

    # Logging
    from repoverse.logging import get_logger, configure_logging
"""

__version__ = "1.0.0"

# Lazy imports to avoid circular dependencies
# Users should import directly from submodules:
#   from repoverse.db import db
#   from repoverse.services.feed_service import FeedService
