"""Shared HTTP helpers used by the registry client.

Encapsulates timeout, retry and error handling so the registry adapter avoids
duplicating try/except blocks. Server errors (5xx) and transport errors are
retried with linear backoff; client errors (4xx) are returned immediately.
Nothing is cached here: caching belongs to the caller and must not outlive
one invocation.
"""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class HttpError(Exception):
    """Raised when a request could not be completed after all retries."""

    def __init__(self, url: str, status_code: int, message: str):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def _backoff(attempt: int) -> None:
    """Sleep before the next attempt; delay grows linearly with the attempt number."""
    time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * attempt)


def _request(url: str, *, headers: Optional[Dict[str, str]] = None,
             stream: bool = False, **kwargs: Any) -> Tuple[Optional[requests.Response], str]:
    """Perform GET with bounded retries.

    Returns:
        Tuple of (response or None, last error description). A response is
        returned for any status below 500 and for the final 5xx attempt.
    """
    safe_target = safe_url(url)
    last_error = ""
    attempts = max(1, Constants.HTTP_RETRY_MAX)

    for attempt in range(1, attempts + 1):
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        attempt=attempt,
                    ),
                )
            try:
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=_default_headers(headers),
                    stream=stream,
                    **kwargs,
                )
            except requests.Timeout:
                last_error = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
            except requests.RequestException as exc:  # includes ConnectionError
                last_error = str(exc)
            else:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                        ),
                    )
                if response.status_code < 500 or attempt == attempts:
                    return response, ""
                last_error = f"HTTP {response.status_code}"
                response.close()

        logger.warning("GET %s failed (%s), attempt %d/%d", safe_target, last_error, attempt, attempts)
        if attempt < attempts:
            _backoff(attempt)

    return None, last_error


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries.

    Returns:
        Tuple of (status_code, headers_dict, body_text). On transport failure
        after all retries the status is 0 and the body carries the error.
    """
    response, error = _request(url, headers=headers, **kwargs)
    if response is None:
        return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {error}"
    return response.status_code, dict(response.headers), response.text


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response.

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    merged = {"Accept": "application/json"}
    if headers:
        merged.update(headers)
    status_code, response_headers, text = robust_get(url, headers=merged, **kwargs)

    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="json_decode_error",
                        target=safe_url(url),
                    ),
                )
            return status_code, response_headers, None

    return status_code, response_headers, None


def _remove_partial(destination: str) -> None:
    try:
        os.remove(destination)
    except FileNotFoundError:
        pass


def download_file(url: str, destination: str, *, headers: Optional[Dict[str, str]] = None) -> str:
    """Stream a URL to ``destination``.

    A transport error while the body is streaming discards the partial file
    and restarts the download, up to ``HTTP_RETRY_MAX`` attempts.

    Raises:
        HttpError: on non-200 status or transport failure after retries.
        OSError: when the destination cannot be written.
    """
    safe_target = safe_url(url)
    parent = os.path.dirname(destination)
    if parent:
        os.makedirs(parent, exist_ok=True)

    last_error = ""
    attempts = max(1, Constants.HTTP_RETRY_MAX)
    for attempt in range(1, attempts + 1):
        response, error = _request(url, headers=headers, stream=True)
        if response is None:
            raise HttpError(url, 0, f"Download of {safe_target} failed: {error}")
        try:
            if response.status_code != 200:
                raise HttpError(
                    url,
                    response.status_code,
                    f"Download of {safe_target} failed: HTTP {response.status_code}",
                )
            try:
                with open(destination, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
            except requests.RequestException as exc:
                last_error = str(exc)
                _remove_partial(destination)
            else:
                logger.debug("Downloaded %s -> %s", safe_target, destination)
                return destination
        finally:
            response.close()

        logger.warning("Download of %s interrupted (%s), attempt %d/%d", safe_target, last_error, attempt, attempts)
        if attempt < attempts:
            _backoff(attempt)

    raise HttpError(url, 0, f"Download of {safe_target} failed after {attempts} attempts: {last_error}")
