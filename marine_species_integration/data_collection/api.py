"""HTTP transport shared by the FishBase and OBIS collectors."""

from __future__ import annotations

import logging
import random
import time
from typing import Any

import requests

from .. import config
from ..exceptions import ExternalServiceError


def make_request(
    url: str,
    params: dict[str, Any] | None = None,
    session=None,
    timeout: float = config.REQUEST_TIMEOUT,
    max_attempts: int = 5,
) -> dict[str, Any]:
    """GET ``url`` and return the decoded JSON body.

    HTTP 429 and 5xx responses are retried with exponential backoff and
    jitter up to ``max_attempts`` times.  Any other failure (connection
    error, 4xx, undecodable body) raises :class:`ExternalServiceError`.
    """
    http = session if session is not None else requests
    attempt = 0
    backoff = 0.5
    while True:
        attempt += 1
        start_t = time.time()
        logging.debug("GET %s params=%s", url, params)
        try:
            resp = http.get(url, params=params, timeout=timeout)
        except requests.RequestException as exc:
            logging.error("Request to %s failed: %s", url, exc)
            raise ExternalServiceError(f"Request to {url} failed: {exc}") from exc
        elapsed = (time.time() - start_t) * 1000
        status = resp.status_code
        if (status == 429 or 500 <= status < 600) and attempt < max_attempts:
            sleep_for = backoff + random.uniform(0, 0.5)
            logging.warning(
                "HTTP %s from %s (%.0f ms); backing off %.2fs (attempt %s)",
                status,
                url,
                elapsed,
                sleep_for,
                attempt,
            )
            time.sleep(sleep_for)
            backoff *= 2
            continue
        if status >= 400:
            logging.error("HTTP %s from %s (%.0f ms): %s", status, url, elapsed, resp.text[:300])
            raise ExternalServiceError(f"HTTP {status} from {url}")
        try:
            return resp.json()
        except ValueError as exc:
            logging.error("Non-JSON body from %s: %s", url, resp.text[:300])
            raise ExternalServiceError(f"Non-JSON response from {url}") from exc
