"""Shared HTTP helpers used by repository and archive clients.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. This module is dependency-light and can be
safely imported by both repository/* and archive/* without cycles.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import FetchError

logger = logging.getLogger(__name__)


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries, with DEBUG traces.

    Returns:
        Tuple of (status_code, headers_dict, body_text); status 0 when every
        attempt failed at the transport level.
    """
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * attempt)
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=_default_headers(headers),
                    **kwargs
                )

                if response.status_code >= 500 and attempt + 1 < Constants.HTTP_RETRY_MAX:
                    last_exception = f"HTTP {response.status_code}"
                    continue

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response ok",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                return response.status_code, dict(response.headers), response.text

            except requests.Timeout:
                last_exception = "timeout"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue

    # All retries failed
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    request_headers = {"Accept": "application/json"}
    if headers:
        request_headers.update(headers)
    status_code, response_headers, text = robust_get(url, headers=request_headers, **kwargs)

    if status_code == 200 and text:
        try:
            parsed = json.loads(text)
            if is_debug_enabled(logger):
                logger.debug(
                    "Parsed JSON response",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="success",
                        status_code=status_code,
                        target=safe_url(url)
                    )
                )
            return status_code, response_headers, parsed
        except json.JSONDecodeError:
            logger.warning("Invalid JSON received from %s", safe_url(url))
            return status_code, response_headers, None

    return status_code, response_headers, None


def download(
    url: str,
    dest_path: str,
    *,
    sha1: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> str:
    """Stream ``url`` to ``dest_path`` via a ``.part`` file.

    Args:
        url: Source URL.
        dest_path: Final file path.
        sha1: Expected SHA-1 hex digest, checked when given.
        headers: Optional request headers.

    Returns:
        dest_path once the file is complete.

    Raises:
        FetchError: on transport errors, non-200 responses, checksum mismatch
            or when the file cannot be written.
    """
    safe_target = safe_url(url)
    part_path = dest_path + ".part"
    digest = hashlib.sha1()
    with Timer() as t:
        try:
            with requests.get(
                url,
                timeout=Constants.REQUEST_TIMEOUT,
                headers=_default_headers(headers),
                stream=True,
            ) as response:
                if response.status_code != 200:
                    raise FetchError(
                        f"Download of {safe_target} failed with HTTP {response.status_code}",
                        url=safe_target,
                    )
                with open(part_path, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
                            digest.update(chunk)

            if sha1 and digest.hexdigest().lower() != sha1.lower():
                raise FetchError(
                    f"Checksum mismatch for {safe_target}: expected {sha1}, got {digest.hexdigest()}",
                    url=safe_target,
                )
            os.replace(part_path, dest_path)
        # RequestException derives from OSError and must be matched first.
        except requests.RequestException as exc:
            raise FetchError(f"Download of {safe_target} failed: {exc}", url=safe_target) from exc
        except OSError as exc:
            raise FetchError(f"Could not write {dest_path}: {exc}", url=safe_target) from exc
        finally:
            _remove_quietly(part_path)

    if is_debug_enabled(logger):
        logger.debug(
            "Download complete",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="download",
                outcome="success",
                duration_ms=t.duration_ms(),
                target=safe_target,
                bytes=os.path.getsize(dest_path),
            )
        )
    return dest_path


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass
