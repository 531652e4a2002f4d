"""
Unipept API client for building taxonomy trees.

Posts a flat taxon-id -> count map to the taxa2tree endpoint and returns the
lineage tree the service builds from it. The tree topology is trusted as-is.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any, Self

import httpx

from taxontree.core.exceptions import TaxonTreeError
from taxontree.models.config import ServiceConfig

logger = logging.getLogger(__name__)


class TaxonomyServiceError(TaxonTreeError):
    """Error communicating with the taxonomy service."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        suggestion = "Check your internet connection and try again."
        if status_code == 400:
            suggestion = "The service rejected the taxon ids. Check that they are NCBI taxon ids."
        elif status_code == 429:
            suggestion = "Rate limited. Wait a moment and try again."
        elif status_code and status_code >= 500:
            suggestion = "Unipept server error. Try again later or pass a config with max_retries."

        super().__init__(message=message, suggestion=suggestion)


class UnipeptClient:
    """Client for the Unipept taxa2tree endpoint.

    Attributes:
        config: Service settings (URL, timeout, retry policy)
    """

    def __init__(self, config: ServiceConfig | None = None):
        """Initialize Unipept client.

        Args:
            config: Service settings. Defaults to the public Unipept API
                with a single attempt per request.
        """
        self.config = config or ServiceConfig()
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __del__(self) -> None:
        """Ensure HTTP client is closed on garbage collection."""
        self.close()

    def taxa2tree(self, counts: Mapping[str, int]) -> dict[str, Any]:
        """Build a taxonomy tree from per-taxon counts.

        Args:
            counts: Taxon id -> integer count (here, a percentage).

        Returns:
            Root node of the tree as a JSON object.

        Raises:
            TaxonomyServiceError: If the request fails or the response is
                not a JSON object.
        """
        payload = {"counts": dict(counts)}
        logger.info(
            "Requesting taxonomy tree for %d taxa from %s%s",
            len(payload["counts"]),
            self.config.base_url,
            self.config.endpoint,
        )

        tree = self._post(self.config.endpoint, payload)
        if not isinstance(tree, dict):
            raise TaxonomyServiceError(
                f"Unexpected taxa2tree response: expected a JSON object, "
                f"got {type(tree).__name__}"
            )
        return tree

    def _post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        """Make POST request with retry logic.

        Implements exponential backoff for transient failures (5xx errors,
        connection errors, rate limiting) when max_retries > 0.

        Args:
            endpoint: API endpoint path
            payload: JSON body

        Returns:
            JSON response data

        Raises:
            TaxonomyServiceError: If request fails after all retries
        """
        client = self._get_client()
        max_retries = self.config.max_retries
        last_exception: Exception | None = None
        delay = self.config.retry_delay

        for attempt in range(max_retries + 1):
            try:
                response = client.post(endpoint, json=payload)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                last_exception = e
                status_code = e.response.status_code

                # Don't retry client errors (4xx) except rate limiting (429)
                if 400 <= status_code < 500 and status_code != 429:
                    raise TaxonomyServiceError(
                        f"taxa2tree request failed: {status_code}",
                        status_code=status_code,
                    ) from e

                if status_code == 429:
                    retry_after = e.response.headers.get("Retry-After")
                    if retry_after:
                        delay = float(retry_after)

                if attempt < max_retries:
                    logger.warning(
                        "taxa2tree request failed (attempt %d/%d): %s. Retrying in %.1fs...",
                        attempt + 1,
                        max_retries + 1,
                        status_code,
                        delay,
                    )
                    time.sleep(delay)
                    delay *= self.config.retry_backoff

            except httpx.RequestError as e:
                last_exception = e
                if attempt < max_retries:
                    logger.warning(
                        "taxa2tree connection error (attempt %d/%d): %s. Retrying in %.1fs...",
                        attempt + 1,
                        max_retries + 1,
                        str(e),
                        delay,
                    )
                    time.sleep(delay)
                    delay *= self.config.retry_backoff

            except ValueError as e:
                # Body was not valid JSON; retrying will not help
                raise TaxonomyServiceError(
                    f"taxa2tree returned invalid JSON: {e}"
                ) from e

        if isinstance(last_exception, httpx.HTTPStatusError):
            raise TaxonomyServiceError(
                f"taxa2tree request failed after {max_retries + 1} attempt(s): "
                f"{last_exception.response.status_code}",
                status_code=last_exception.response.status_code,
            ) from last_exception
        raise TaxonomyServiceError(
            f"taxa2tree request failed after {max_retries + 1} attempt(s): "
            f"{last_exception}"
        ) from last_exception
