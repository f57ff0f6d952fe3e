"""Apify REST API client.

Starts Apify actors (hosted scrapers), waits for them to finish and reads
their default dataset.  Used by the Apify-backed research tools in
``festifind/tools/apify_tools.py``.

API reference: https://docs.apify.com/api/v2
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from festifind.utils.errors import (
    FestiFindError,
    ProviderUnavailableError,
    RateLimitError,
    ResearchError,
)

logger = structlog.get_logger(logger_name=__name__)

APIFY_API_BASE = "https://api.apify.com/v2"

APIFY_ACTORS = {
    "LINKEDIN_COMPANY_SCRAPER": "dev_fusion/Linkedin-Company-Scraper",
    "LINKEDIN_PROFILE_SCRAPER": "anchor/linkedin-profile-scraper",
    "WEBSITE_CONTENT_CRAWLER": "apify/website-content-crawler",
    "RAG_WEB_BROWSER": "apify/rag-web-browser",
    "CHEERIO_SCRAPER": "apify/cheerio-scraper",
    "GOOGLE_SEARCH_SCRAPER": "apify/google-search-scraper",
    "INSTAGRAM_SCRAPER": "apify/instagram-scraper",
}

_REQUEST_TIMEOUT = httpx.Timeout(200.0)
_MAX_RETRIES = 3
_RETRY_BACKOFF = 1.0  # seconds, doubled on every retry
_MAX_BACKOFF = 30.0
_CIRCUIT_BREAKER_THRESHOLD = 3
_CIRCUIT_RESET_SECONDS = 60.0

_TERMINAL_STATUSES = frozenset({"SUCCEEDED", "FAILED", "TIMED-OUT", "ABORTED"})
_FAILED_STATUSES = frozenset({"FAILED", "TIMED-OUT", "ABORTED"})


@dataclass(frozen=True)
class ActorRun:
    """Status record of one actor run."""

    id: str
    act_id: str
    status: str
    default_dataset_id: str | None = None
    started_at: str | None = None
    finished_at: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ActorRun:
        return cls(
            id=data.get("id", ""),
            act_id=data.get("actId", ""),
            status=data.get("status", "READY"),
            default_dataset_id=data.get("defaultDatasetId"),
            started_at=data.get("startedAt"),
            finished_at=data.get("finishedAt"),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == "SUCCEEDED"

    @property
    def finished(self) -> bool:
        return self.status in _TERMINAL_STATUSES


def normalize_actor_id(actor_id: str) -> str:
    """Apify URLs use ``user~actor``; the console shows ``user/actor``."""
    return actor_id.replace("/", "~", 1)


class ApifyClient:
    """Async client for the Apify v2 API.

    Requests that fail with HTTP 429, a 5xx status or a transport error are
    retried with exponential backoff, at most *max_retries* attempts in
    total.  After ``circuit_breaker_threshold`` consecutive failed requests
    the circuit opens and every request fails fast with
    :class:`ProviderUnavailableError` until *circuit_reset_seconds* have
    passed.
    """

    def __init__(
        self,
        api_token: str,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = APIFY_API_BASE,
        max_retries: int = _MAX_RETRIES,
        retry_backoff: float = _RETRY_BACKOFF,
        circuit_breaker_threshold: int = _CIRCUIT_BREAKER_THRESHOLD,
        circuit_reset_seconds: float = _CIRCUIT_RESET_SECONDS,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self._api_token = api_token
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=_REQUEST_TIMEOUT)
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._circuit_threshold = circuit_breaker_threshold
        self._circuit_reset_seconds = circuit_reset_seconds
        self._consecutive_failures = 0
        self._circuit_opened_at: float | None = None
        if not api_token:
            logger.warning("apify_token_missing")

    def is_configured(self) -> bool:
        return bool(self._api_token)

    # -- Circuit breaker ---------------------------------------------------

    @property
    def circuit_open(self) -> bool:
        if self._circuit_opened_at is None:
            return False
        if time.monotonic() - self._circuit_opened_at >= self._circuit_reset_seconds:
            self.reset_circuit_breaker()
            return False
        return True

    def reset_circuit_breaker(self) -> None:
        self._consecutive_failures = 0
        self._circuit_opened_at = None

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if (
            self._circuit_opened_at is None
            and self._consecutive_failures >= self._circuit_threshold
        ):
            self._circuit_opened_at = time.monotonic()
            logger.warning("apify_circuit_open", failures=self._consecutive_failures)

    def _backoff_delay(self, attempt: int) -> float:
        return min(self._retry_backoff * 2 ** (attempt - 1), _MAX_BACKOFF)

    # -- HTTP ----------------------------------------------------------------

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        if not self.is_configured():
            raise ProviderUnavailableError(
                message="Apify API token not configured",
                provider_name="apify",
            )
        if self.circuit_open:
            raise ProviderUnavailableError(
                message="Apify temporarily unavailable (circuit breaker open)",
                provider_name="apify",
            )

        query = {k: v for k, v in (params or {}).items() if v is not None}
        query["token"] = self._api_token
        url = f"{self._base_url}{endpoint}"

        error: FestiFindError
        cause: Exception | None = None
        for attempt in range(1, self._max_retries + 1):
            try:
                response = await self._client.request(
                    method,
                    url,
                    params=query,
                    json=json_body,
                    timeout=_REQUEST_TIMEOUT,
                )
            except httpx.HTTPError as exc:
                logger.warning(
                    "apify_request_failed",
                    endpoint=endpoint,
                    error=str(exc),
                    attempt=attempt,
                )
                error = ProviderUnavailableError(
                    message=f"Apify request failed: {exc}",
                    provider_name="apify",
                )
                cause = exc
            else:
                if response.status_code == 429:
                    logger.warning("apify_rate_limited", endpoint=endpoint, attempt=attempt)
                    error = RateLimitError(message="Apify rate limit exceeded", provider_name="apify")
                    cause = None
                elif response.status_code >= 500:
                    logger.warning(
                        "apify_server_error",
                        endpoint=endpoint,
                        status=response.status_code,
                        attempt=attempt,
                    )
                    error = ResearchError(
                        message=f"Apify API error ({response.status_code}): {response.text[:300]}",
                        provider_name="apify",
                    )
                    cause = None
                elif response.is_error:
                    # 402 means the account hit its memory or billing limit.
                    if response.status_code == 402:
                        self._record_failure()
                    raise ResearchError(
                        message=f"Apify API error ({response.status_code}): {response.text[:300]}",
                        provider_name="apify",
                    )
                else:
                    self._consecutive_failures = 0
                    return response.json()

            if attempt < self._max_retries:
                await asyncio.sleep(self._backoff_delay(attempt))

        self._record_failure()
        raise error from cause

    async def run_actor(
        self,
        actor_id: str,
        actor_input: dict[str, Any],
        wait_for_finish: int = 120,
        memory: int | None = None,
        timeout: int | None = None,
    ) -> tuple[ActorRun, list[dict[str, Any]]]:
        """Start *actor_id*, wait up to *wait_for_finish* seconds, return its items.

        Items are only fetched for a run that SUCCEEDED within the wait
        window; otherwise the list is empty and the caller inspects
        ``run.status``.
        """
        normalized = normalize_actor_id(actor_id)
        logger.info("apify_actor_start", actor=actor_id)

        body = await self._request(
            "POST",
            f"/acts/{normalized}/runs",
            params={
                "waitForFinish": wait_for_finish if wait_for_finish > 0 else None,
                "memory": memory,
                "timeout": timeout,
            },
            json_body=actor_input,
        )
        run = ActorRun.from_api(body.get("data", {}))

        items: list[dict[str, Any]] = []
        if run.succeeded and run.default_dataset_id:
            items = await self.get_dataset_items(run.default_dataset_id)
        elif run.status in _FAILED_STATUSES:
            logger.warning("apify_actor_failed", actor=actor_id, run_id=run.id, status=run.status)

        logger.info(
            "apify_actor_finished",
            actor=actor_id,
            run_id=run.id,
            status=run.status,
            item_count=len(items),
        )
        return run, items

    async def get_dataset_items(
        self,
        dataset_id: str,
        limit: int = 1000,
        offset: int = 0,
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if fields:
            params["fields"] = ",".join(fields)
        items = await self._request("GET", f"/datasets/{dataset_id}/items", params=params)
        return items if isinstance(items, list) else []

    async def get_run_status(self, run_id: str) -> ActorRun:
        body = await self._request("GET", f"/actor-runs/{run_id}")
        return ActorRun.from_api(body.get("data", {}))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
