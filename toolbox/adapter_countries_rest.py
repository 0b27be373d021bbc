# adapter_countries_rest.py
# - REST Countries (v3.1) integration adapter
# - 429/5xx backoff with Retry-After, bounded timeout, standardized errors

import time
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import httpx
from toolbox.config import cfg

logger = logging.getLogger("countries")


class CountriesAPIError(Exception):
    """REST Countries error wrapper"""
    def __init__(self, status: int, code: str, message: str):
        super().__init__(f"{status}:{code}:{message}")
        self.status = status
        self.code = code
        self.message = message


class CountryNotFound(CountriesAPIError):
    def __init__(self, country: str):
        super().__init__(404, "NotFound", f"country not found: {country}")
        self.country = country


def _parse_retry_after(val: str) -> float:
    """Parse Retry-After header (seconds or HTTP-date). Return seconds to sleep (>=0)."""
    try:
        return max(0.0, float(val))
    except ValueError:
        pass
    try:
        from email.utils import parsedate_to_datetime
        dt = parsedate_to_datetime(val)
        return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())
    except (TypeError, ValueError):
        return 0.0


class CountriesClient:
    """Thin client for ``GET {base_url}/name/{country}``."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
        backoff_factor: Optional[float] = None,
        max_wait: Optional[float] = None,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = (base_url or cfg.countries_base_url).rstrip("/")
        self.max_retries = cfg.http_max_retries if max_retries is None else max_retries
        self.backoff = cfg.http_backoff_initial if backoff is None else backoff
        self.backoff_factor = cfg.http_backoff_factor if backoff_factor is None else backoff_factor
        self.max_wait = cfg.http_retry_after_max if max_wait is None else max_wait
        self._client = client or httpx.Client(timeout=cfg.http_timeout if timeout is None else timeout)
        self._sleep = sleep

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, country: str) -> Any:
        backoff = self.backoff
        for attempt in range(self.max_retries + 1):
            try:
                r = self._client.get(url, headers={"Accept": "application/json"})
            except httpx.HTTPError as e:
                raise CountriesAPIError(500, "Client", str(e)[:120]) from e

            if r.status_code < 400:
                return r.json() if r.content else None

            if r.status_code == 404:
                raise CountryNotFound(country)

            if r.status_code in (429, 500, 502, 503, 504) and attempt < self.max_retries:
                ra = r.headers.get("Retry-After")
                wait = min(_parse_retry_after(ra) if ra else backoff, self.max_wait)
                logger.info(f"countries.retry status={r.status_code} attempt={attempt + 1} wait={wait:.2f}")
                self._sleep(max(0.0, wait))
                backoff *= self.backoff_factor
                continue

            raise CountriesAPIError(r.status_code, "HTTP", (r.reason_phrase or r.text or "")[:120])
        # unreachable: the last attempt either returns or raises
        raise CountriesAPIError(500, "Client", "retries exhausted")

    def lookup(self, country: str) -> Optional[Dict[str, Any]]:
        """Return the first matching country record, or None for an empty answer."""
        data = self._get(f"{self.base_url}/name/{quote(country, safe='')}", country)
        if isinstance(data, list):
            return data[0] if data else None
        return data or None
