"""
Planning REST API Client
========================

Thin ``requests`` client for the planning service collections
(``/annual-work-plans``, ``/major-events``, ``/monthly-progress``,
``/action-plans``).

Features:
- **Thread-safe singleton**: one configured client per process
- **Retry with exponential backoff** for reads (429, 5xx, network errors)
- **No retry for writes**: a create/update/delete is attempted exactly once,
  the caller decides how to recover (see ``fn_planning_sync.upsert``)
- **Typed exceptions**: HTTP errors are converted at this boundary

Environment
-----------
PLANNING_API_BASE_URL
    Service root including the ``/api`` prefix (required)
PLANNING_API_TOKEN
    Optional bearer token
PLANNING_API_USER
    Optional user name sent as ``X-User``
PLANNING_API_TIMEOUT
    Request timeout in seconds (default 30)
"""

import os
import logging
import time
import threading
import functools
from typing import Optional, List, Dict, Any, Callable, TypeVar
import requests
from requests.exceptions import RequestException

from .helpers import parse_float_safe

logger = logging.getLogger(__name__)

# Type variable for generic retry decorator
T = TypeVar('T')

DEFAULT_TIMEOUT = 30.0


# ============== Custom Exceptions ==============

class PlanningApiError(Exception):
    """Base exception for planning service operations."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PlanningApiNotFoundError(PlanningApiError):
    """Raised when a record or collection does not exist."""
    pass


class PlanningApiAuthError(PlanningApiError):
    """Raised when the service rejects the credentials (401/403)."""
    pass


# ============== Retry Decorator ==============

def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    retryable_status_codes: tuple = (429, 500, 502, 503, 504),
    retryable_exceptions: tuple = (RequestException,),
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    Handles:
    - HTTP 429 rate limit (respects Retry-After header)
    - HTTP 5xx server errors
    - Network errors
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except requests.HTTPError as e:
                    response = e.response
                    status_code = response.status_code if response is not None else 0

                    if status_code not in retryable_status_codes:
                        raise

                    last_exception = e
                    wait_time = min(base_delay * (exponential_base ** attempt), max_delay)

                    if status_code == 429:
                        retry_after = response.headers.get('Retry-After')
                        if retry_after:
                            wait_time = min(parse_float_safe(retry_after, wait_time), max_delay)
                        logger.warning(f"Rate limit hit. Waiting {wait_time}s before retry {attempt + 1}/{max_retries}")
                    else:
                        logger.warning(f"HTTP {status_code}. Retry {attempt + 1}/{max_retries} in {wait_time}s")

                    if attempt < max_retries:
                        time.sleep(wait_time)

                except retryable_exceptions as e:
                    last_exception = e
                    wait_time = min(base_delay * (exponential_base ** attempt), max_delay)
                    logger.warning(f"Transient error: {e}. Retry {attempt + 1}/{max_retries} in {wait_time}s")

                    if attempt < max_retries:
                        time.sleep(wait_time)

            # All retries exhausted
            raise last_exception or PlanningApiError("Max retries exceeded")

        return wrapper
    return decorator


def _to_api_error(error: Exception) -> PlanningApiError:
    """Convert a requests error into the planning exception hierarchy."""
    if isinstance(error, requests.HTTPError) and error.response is not None:
        status_code = error.response.status_code
        if status_code == 404:
            return PlanningApiNotFoundError(str(error), status_code)
        if status_code in (401, 403):
            return PlanningApiAuthError(str(error), status_code)
        return PlanningApiError(str(error), status_code)
    return PlanningApiError(str(error))


# ============== Planning API Client ==============

class PlanningApiClient:
    """
    REST client for the four planning collections.

    Usage:
        >>> client = get_planning_client()
        >>> rows = client.list_records("/major-events", {"year": 2025})
        >>> created = client.create_record("/major-events", {"year": 2025, "month": 3})
        >>> created["id"]
        17
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        user: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or os.environ.get("PLANNING_API_BASE_URL") or "").rstrip("/")
        if not self.base_url:
            raise ValueError("PLANNING_API_BASE_URL environment variable is required")

        token = token or os.environ.get("PLANNING_API_TOKEN")
        user = user or os.environ.get("PLANNING_API_USER")
        if timeout is None:
            timeout = parse_float_safe(os.environ.get("PLANNING_API_TIMEOUT"), DEFAULT_TIMEOUT)
        self.timeout = timeout

        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        if user:
            self.headers["X-User"] = user

        logger.info(f"PlanningApiClient initialized for {self.base_url}")

    # ============== Low-level API Methods ==============

    def _make_request(
        self,
        method: str,
        path: str,
        json: Optional[Dict] = None,
        params: Optional[Dict] = None
    ) -> requests.Response:
        """Issue one request and raise on HTTP errors."""
        response = requests.request(
            method=method,
            url=f"{self.base_url}{path}",
            headers=self.headers,
            json=json,
            params=params,
            timeout=self.timeout
        )

        if not response.ok:
            logger.error(f"Planning API error: {method} {path} -> {response.status_code} - {response.text[:500]}")

        response.raise_for_status()
        return response

    @retry_with_backoff(max_retries=3)
    def _get_json(self, path: str, params: Optional[Dict] = None) -> Any:
        return self._make_request("GET", path, params=params).json()

    @staticmethod
    def _json_or_empty(response: requests.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    # ============== Record Operations ==============

    def list_records(self, path: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        List the records of a collection.

        Filters with a None value are not sent. The service answers either a
        bare list or an envelope ``{"data": [...]}``; both are accepted.
        """
        params = {k: v for k, v in (filters or {}).items() if v is not None}
        try:
            body = self._get_json(path, params=params)
        except RequestException as e:
            raise _to_api_error(e) from e

        if isinstance(body, dict):
            body = body.get("data") or []
        if not isinstance(body, list):
            raise PlanningApiError(f"Unexpected list response for {path}: {type(body).__name__}")
        return body

    def create_record(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a record. Returns the stored record including its new id."""
        try:
            response = self._make_request("POST", path, json=payload)
        except RequestException as e:
            raise _to_api_error(e) from e

        body = self._json_or_empty(response)
        if isinstance(body.get("data"), dict):
            body = body["data"]
        if body.get("id") is None:
            raise PlanningApiError(f"Create on {path} returned no id")
        return {**payload, **body}

    def update_record(self, path: str, record_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Update a record in place. Returns the payload with the record id."""
        try:
            response = self._make_request("PUT", f"{path}/{record_id}", json=payload)
        except RequestException as e:
            raise _to_api_error(e) from e

        body = self._json_or_empty(response)
        if body.get("success") is False:
            raise PlanningApiError(body.get("error") or f"Update of {path}/{record_id} was rejected")
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        return {**payload, **data, "id": record_id}

    def delete_record(self, path: str, record_id: Any) -> bool:
        """Delete a record. Returns True once the service acknowledged it."""
        try:
            response = self._make_request("DELETE", f"{path}/{record_id}")
        except RequestException as e:
            raise _to_api_error(e) from e

        body = self._json_or_empty(response)
        if body.get("success") is False:
            raise PlanningApiError(body.get("error") or f"Delete of {path}/{record_id} was rejected")
        return True


# ============== Thread-safe Singleton ==============

_client: Optional[PlanningApiClient] = None
_client_lock = threading.Lock()


def get_planning_client(reset: bool = False) -> PlanningApiClient:
    """
    Get or create the singleton planning client.
    Thread-safe implementation.

    Args:
        reset: If True, creates a new client instance

    Returns:
        PlanningApiClient instance
    """
    global _client

    with _client_lock:
        if reset or _client is None:
            _client = PlanningApiClient()
        return _client


def reset_planning_client():
    """Reset the singleton client."""
    global _client
    with _client_lock:
        _client = None
