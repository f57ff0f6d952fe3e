"""Apify scraping-service client."""

from festifind.providers.apify.apify_client import (
    APIFY_ACTORS,
    ActorRun,
    ApifyClient,
    normalize_actor_id,
)

__all__ = ["APIFY_ACTORS", "ActorRun", "ApifyClient", "normalize_actor_id"]
