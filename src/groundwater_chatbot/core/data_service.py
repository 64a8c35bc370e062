from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from groundwater_chatbot.config import (
    GROUNDWATER_API_BASE_URL,
    GROUNDWATER_API_TIMEOUT,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class DataServiceError(Exception):
    """Raised when the groundwater data service cannot answer a request."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class TransportFailure(DataServiceError):
    """The service could not be reached (connection refused, DNS, timeout)."""


class NotFound(DataServiceError):
    """The service answered 404 for the requested location."""


class ServerFailure(DataServiceError):
    """The service answered with a 5xx status."""


class UnknownFailure(DataServiceError):
    """Any other failure: unexpected status, non-JSON body, wrong shape."""


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries.

    Only GET is retried: metadata lookups are safe to repeat, the query
    POST is sent once and its failure is reported to the user.
    """
    session = requests.Session()

    retry = Retry(
        total=3,
        connect=3,
        read=3,
        status=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Content-Type": "application/json"})

    return session


def _error_message(resp: requests.Response) -> str:
    """
    Pull a human-readable message out of an error response.

    The service puts it under 'message' or 'error'; when the body is not
    JSON we fall back to the HTTP status line.
    """
    fallback = f"HTTP {resp.status_code}: {resp.reason}"
    try:
        data = resp.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        if msg:
            return str(msg)
    return fallback


def _raise_for_status(resp: requests.Response) -> None:
    if resp.ok:
        return

    message = _error_message(resp)
    status = resp.status_code
    if status == 404:
        raise NotFound(message, status=status)
    if status >= 500:
        raise ServerFailure(message, status=status)
    raise UnknownFailure(message, status=status)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class DataServiceClient:
    """
    Thin JSON-over-HTTP client for the groundwater metadata/query service.

    Every transport or protocol problem surfaces as a DataServiceError
    subclass so callers can translate it into a user-facing message by
    category.
    """

    def __init__(
        self,
        base_url: str = GROUNDWATER_API_BASE_URL,
        timeout_seconds: int = GROUNDWATER_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session if session is not None else _build_retry_session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = self._url(path)
        logger.info("%s %s params=%s", method, url, params)

        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=body,
                timeout=self.timeout_seconds,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransportFailure(f"Could not reach the data service: {exc}") from exc
        except requests.RequestException as exc:
            raise UnknownFailure(f"HTTP error while calling {path}: {exc}") from exc

        _raise_for_status(resp)

        try:
            return resp.json()
        except ValueError as exc:
            preview = (resp.text or "")[:200]
            raise UnknownFailure(
                f"Non-JSON response from data service (status={resp.status_code}). Preview: {preview}",
                status=resp.status_code,
            ) from exc

    def _get_name_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[str]:
        data = self._request("GET", path, params=params)
        if not isinstance(data, list):
            raise UnknownFailure(f"Expected a list from {path}, got {type(data).__name__}")
        return [str(item) for item in data]

    # -- metadata ----------------------------------------------------------

    def fetch_states(self) -> List[str]:
        return self._get_name_list("/meta/states")

    def fetch_districts(self, state: str) -> List[str]:
        return self._get_name_list("/meta/districts", params={"state": state})

    def fetch_blocks(self, state: str, district: str) -> List[str]:
        return self._get_name_list("/meta/blocks", params={"state": state, "district": district})

    # -- query -------------------------------------------------------------

    def run_query(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST the resolved location/year payload to /query.

        Any of state/district/block may be None ("all"); years == [] asks
        the service for the latest available year.
        """
        data = self._request("POST", "/query", body=payload)
        if not isinstance(data, dict):
            raise UnknownFailure(f"Expected an object from /query, got {type(data).__name__}")
        return data
