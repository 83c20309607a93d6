"""
Base HTTP client for the read-only public APIs of the upstream services.

Every call returns a FetchResult. Transport failures and 5xx responses are
retried with exponential backoff; whatever is left after the last attempt is
translated into an ErrorKind instead of being raised.
"""
import logging
import threading
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from config.settings import settings
from gateway.errors import ErrorKind
from .result import FetchResult

# Caps concurrent outbound calls across all clients and fan-out workers
_upstream_semaphore = threading.Semaphore(settings.max_concurrent_requests)


class TransientUpstreamError(Exception):
    """Raised inside the retry loop for failures worth another attempt."""

    def __init__(self, result: FetchResult):
        super().__init__(result.message)
        self.result = result


def items_of(value: Any) -> List[Any]:
    """
    Extract the list from an upstream payload.

    Paginated endpoints wrap their rows as {"data": [...], "meta": ...};
    plain endpoints return the list directly.
    """
    if isinstance(value, dict) and "data" in value:
        value = value["data"]
    return value if isinstance(value, list) else []


class ServiceClient:
    """
    GET-only client bound to one upstream base URL.

    Subclasses add one method per logical fetch and never cache anything
    themselves; caching belongs to the aggregation layer.
    """

    service_name = "service"

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        retries: Optional[int] = None,
        backoff: float = 0.1,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.upstream_timeout
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None
            else settings.upstream_connect_timeout
        )
        self.retries = max(1, retries if retries is not None else settings.upstream_retries)
        self.backoff = backoff
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self.logger = logging.getLogger(f"clients.{self.service_name}")

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> FetchResult:
        """
        Fetch `path` and unwrap the {success, data, error?} envelope.

        Args:
            path: Endpoint path relative to the base URL
            params: Query parameters; None values are dropped

        Returns:
            FetchResult with the `data` payload, or the error kind
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: v for k, v in (params or {}).items() if v is not None}

        retrying = Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff, min=self.backoff, max=2),
            retry=retry_if_exception_type(TransientUpstreamError),
            reraise=True,
        )
        try:
            response = retrying(self._send, url, query)
        except TransientUpstreamError as e:
            self.logger.error(
                f"GET {url} failed after {self.retries} attempts: {e.result.message}"
            )
            return e.result

        return self._to_result(url, response)

    def _send(self, url: str, query: Dict[str, Any]) -> requests.Response:
        with _upstream_semaphore:
            try:
                response = self._session.get(
                    url,
                    params=query,
                    timeout=(self.connect_timeout, self.timeout),
                )
            except requests.Timeout as e:
                raise TransientUpstreamError(
                    FetchResult.err(ErrorKind.UNAVAILABLE, f"timeout: {e}")
                )
            except requests.ConnectionError as e:
                raise TransientUpstreamError(
                    FetchResult.err(ErrorKind.UNAVAILABLE, f"connection error: {e}")
                )
            except requests.RequestException as e:
                raise TransientUpstreamError(
                    FetchResult.err(ErrorKind.UNAVAILABLE, str(e))
                )

        if response.status_code >= 500:
            self.logger.warning(f"GET {url} -> {response.status_code}, retrying")
            raise TransientUpstreamError(
                FetchResult.err(
                    ErrorKind.UNAVAILABLE,
                    f"{self.service_name} returned {response.status_code}",
                    status=response.status_code,
                )
            )
        return response

    def _to_result(self, url: str, response: requests.Response) -> FetchResult:
        status = response.status_code

        if status == 404:
            return FetchResult.err(
                ErrorKind.NOT_FOUND, f"{self.service_name}: not found", status=404
            )

        if not 200 <= status < 300:
            self.logger.warning(f"GET {url} -> unexpected status {status}")
            return FetchResult.err(
                ErrorKind.BAD_RESPONSE,
                f"{self.service_name} returned {status}",
                status=status,
            )

        try:
            body = response.json()
        except ValueError:
            self.logger.warning(f"GET {url} -> body is not JSON")
            return FetchResult.err(
                ErrorKind.BAD_RESPONSE, f"{self.service_name}: invalid JSON", status=status
            )

        if isinstance(body, dict) and body.get("success") is False:
            message = body.get("error") or body.get("message") or "request failed"
            return FetchResult.err(ErrorKind.BAD_RESPONSE, str(message), status=status)

        if isinstance(body, dict) and "data" in body:
            return FetchResult.ok(body["data"], status=status)
        return FetchResult.ok(body, status=status)
