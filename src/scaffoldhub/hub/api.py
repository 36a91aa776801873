"""Client for the remote template hub index."""

from __future__ import annotations

import logging
import time
from typing import Any, List

import requests

from scaffoldhub.config import AppConfig
from scaffoldhub.models import IndexEntry

LOGGER = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)
MAX_RETRY_AFTER = 60.0


class HubError(RuntimeError):
    """Raised when the hub index cannot be fetched or understood."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"{message} ({url})")


class HubClient:
    """Fetches the hub index with exponential backoff on throttling and server errors.

    Args:
        index_url: URL of the JSON index document
        timeout: Request timeout in seconds (default: 15)
        max_retries: Maximum number of attempts (default: 3)
    """

    def __init__(self, index_url: str, *, timeout: int = 15, max_retries: int = 3) -> None:
        self.index_url = index_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HubClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get(self) -> requests.Response:
        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                response = self.session.get(self.index_url, timeout=self.timeout)
            except requests.RequestException as exc:
                if last_attempt:
                    raise HubError(self.index_url, f"Could not reach the template hub: {exc}") from exc
                wait = min(8.0, 2.0**attempt)
                LOGGER.debug("Request failed (%s), retrying in %.1fs", exc, wait)
                time.sleep(wait)
                continue

            if response.status_code in RETRYABLE_STATUS and not last_attempt:
                wait = self._calculate_backoff_time(response, attempt)
                LOGGER.debug("Hub returned %s, retrying in %.1fs", response.status_code, wait)
                time.sleep(wait)
                continue

            if response.status_code >= 400:
                raise HubError(
                    self.index_url, f"Template hub returned HTTP {response.status_code}"
                )
            return response

        raise HubError(self.index_url, "Template hub did not answer")  # pragma: no cover

    def _calculate_backoff_time(self, response: requests.Response, attempt: int) -> float:
        """Calculate backoff time, respecting Retry-After header if present."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return min(max(float(retry_after), 1.0), MAX_RETRY_AFTER)
            except (ValueError, TypeError):
                pass
        return min(8.0, 2.0**attempt)

    def index(self) -> List[IndexEntry]:
        """Download and parse the hub index."""
        response = self._get()
        try:
            document = response.json()
        except ValueError as exc:
            raise HubError(self.index_url, "Template hub returned invalid JSON") from exc
        return parse_index(document, source=self.index_url)


def parse_index(document: Any, *, source: str = "<index>") -> List[IndexEntry]:
    """Turn an index document into entries, skipping malformed ones."""
    if isinstance(document, dict):
        raw_entries = document.get("entries", document.get("items"))
    else:
        raw_entries = document
    if not isinstance(raw_entries, list):
        raise HubError(source, "Template hub index is not a list of entries")

    entries: List[IndexEntry] = []
    for position, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            LOGGER.warning("Skipping index entry %d: not an object", position)
            continue
        try:
            entries.append(IndexEntry.from_dict(raw))
        except ValueError as exc:
            LOGGER.warning("Skipping index entry %d: %s", position, exc)
    LOGGER.debug("Loaded %d entries from %s", len(entries), source)
    return entries


def fetch_index(config: AppConfig) -> List[IndexEntry]:
    with HubClient(config.index_url, timeout=config.timeout, max_retries=config.max_retries) as client:
        return client.index()
