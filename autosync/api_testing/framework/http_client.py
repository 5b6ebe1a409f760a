"""
================================================================================
API Client with Allure Integration
================================================================================

HTTP companion to the UI layer, used by tests to seed and verify backend
state around browser flows.

Features:
    - Base URL, timeout and bearer token from configuration
    - Retry with exponential backoff on network errors
    - Rate limit (429) handling with Retry-After parsing
    - Request/response attached to Allure with secrets masked
    - cURL command for reproduction

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from autosync.common.config_loader import ConfigLoader


MAX_RESPONSE_LENGTH = 3000
MASK = "***MASKED***"

SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie", "set-cookie"}
SENSITIVE_FIELDS = ("password", "secret", "token", "api_key", "authorization")


class ApiClientError(Exception):
    """Base exception for API client errors."""
    pass


class RateLimitExceeded(ApiClientError):
    """Raised when every retry was answered with 429."""
    pass


class ApiClient:
    """
    JSON API client with retries and Allure reporting.

    Usage:
        >>> with ApiClient(ConfigLoader()) as api:
        ...     response = api.post("/api/bookings", json={"room": 12})
        ...     assert response.status_code == 201
    """

    def __init__(self, config: Optional[ConfigLoader] = None) -> None:
        """
        Initialize API client.

        Args:
            config: Configuration loader. Uses the singleton if None.
        """
        config = config or ConfigLoader()
        self.base_url = config.get("api.base_url", "http://localhost:8000")
        self.timeout = float(config.get("api.timeout", 30.0))
        # At least one attempt is always made
        self.retry_count = max(1, int(config.get("api.retry_count", 3)))
        self.retry_backoff = float(config.get("api.retry_backoff", 0.5))
        self.retry_max_wait = float(config.get("api.retry_max_wait", 5.0))
        self.token = config.get("api.token") or None

        self.session: Optional[httpx.Client] = None

    def __enter__(self) -> "ApiClient":
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        self.session = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers=headers,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.session:
            self.session.close()
            self.session = None

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        Args:
            method: HTTP method
            url: Path relative to base_url
            **kwargs: Passed through to ``httpx.Client.request``

        Returns:
            httpx.Response (any status other than 429)

        Raises:
            ApiClientError: Client used outside its context manager
            RateLimitExceeded: Every attempt was rate limited
            httpx.TimeoutException, httpx.NetworkError: Network retries exhausted
        """
        if self.session is None:
            raise ApiClientError("ApiClient must be used as a context manager: 'with ApiClient() as api:'")

        for attempt in range(self.retry_count):
            try:
                response = self.session.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt == self.retry_count - 1:
                    logger.error(f"{method} {url} failed after {self.retry_count} attempts: {e}")
                    raise
                wait_time = self._backoff(attempt)
                logger.warning(
                    f"Network error on {method} {url}: {e}. "
                    f"Retrying in {wait_time}s ({attempt + 1}/{self.retry_count})"
                )
                time.sleep(wait_time)
                continue

            if response.status_code == 429:
                wait_time = self._retry_after(response)
                logger.warning(
                    f"Rate limited on {method} {url}. "
                    f"Retrying in {wait_time}s ({attempt + 1}/{self.retry_count})"
                )
                time.sleep(wait_time)
                continue

            self._attach_to_allure(method, url, kwargs, response)
            return response

        raise RateLimitExceeded(f"{method} {url} rate limited on all {self.retry_count} attempts")

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    def _backoff(self, attempt: int) -> float:
        return min(self.retry_backoff * (2 ** attempt), self.retry_max_wait)

    def _retry_after(self, response: httpx.Response) -> float:
        """Seconds from the Retry-After header, capped at retry_max_wait."""
        try:
            wait_time = float(response.headers.get("Retry-After", ""))
        except ValueError:
            wait_time = self.retry_backoff
        return min(wait_time, self.retry_max_wait)

    # =========================================================================
    # Reporting
    # =========================================================================

    def _attach_to_allure(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> None:
        request_headers = dict(self.session.headers) if self.session else {}
        request_headers.update(kwargs.get("headers") or {})
        safe_headers = self._redact_headers(request_headers)
        safe_body = self._redact_body(kwargs.get("json"))
        full_url = str(response.request.url) if response.request else url

        with allure.step(f"{method} {url} -> {response.status_code}"):
            allure.attach(
                self._build_curl(method, full_url, safe_headers, safe_body),
                name="cURL",
                attachment_type=AttachmentType.TEXT,
            )
            try:
                content = json.dumps(response.json(), ensure_ascii=False, indent=2)
                attachment_type = AttachmentType.JSON
            except ValueError:
                content = response.text or "<empty>"
                attachment_type = AttachmentType.TEXT
            if len(content) > MAX_RESPONSE_LENGTH:
                content = f"{content[:MAX_RESPONSE_LENGTH]}\n... [truncated, {len(content)} chars]"
            allure.attach(content, name=f"Response {response.status_code}", attachment_type=attachment_type)

        logger.debug(f"{method} {full_url} -> {response.status_code}")

    def _redact_headers(self, headers: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: MASK if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def _redact_body(self, payload: Any) -> Any:
        if isinstance(payload, dict):
            return {
                key: MASK if any(f in key.lower() for f in SENSITIVE_FIELDS) else self._redact_body(value)
                for key, value in payload.items()
            }
        if isinstance(payload, list):
            return [self._redact_body(item) for item in payload]
        return payload

    def _build_curl(
        self,
        method: str,
        url: str,
        headers: Dict[str, Any],
        body: Optional[Any],
    ) -> str:
        parts = [f"curl -X {method}"]
        parts.extend(f"-H '{key}: {value}'" for key, value in headers.items())
        if body is not None:
            parts.append(f"-d '{json.dumps(body, ensure_ascii=False)}'")
        parts.append(f"'{url}'")
        return " \\\n  ".join(parts)


__all__ = [
    "ApiClient",
    "ApiClientError",
    "RateLimitExceeded",
]
