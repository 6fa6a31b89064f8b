"""
OpenWeather client for the weather widget.

Calls GET /data/2.5/weather?q=<city>&units=metric and reduces the payload to
city, temperature, feels-like and description. OpenWeather reports errors
in-band through the `cod` field ("404" for an unknown city), which we pass
back to the caller as a validation failure with its message.
"""
import logging
from typing import Optional

import httpx

from triptalk.config import settings
from triptalk.results import ErrorKind, Result, failure, success
from triptalk.telemetry import UPSTREAM_ERRORS_TOTAL

logger = logging.getLogger(__name__)


class WeatherClient:
    def __init__(self) -> None:
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._http = httpx.AsyncClient(
            base_url=settings.openweather_api_url,
            timeout=settings.external_timeout_seconds,
            transport=transport,
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def current(self, city: str) -> Result[dict]:
        api_key = settings.openweather_api_key
        if not api_key:
            return failure(
                ErrorKind.UNAVAILABLE, "Weather API key not configured on server."
            )
        if self._http is None:
            return failure(ErrorKind.UNAVAILABLE, "Weather service is not available.")

        try:
            resp = await self._http.get(
                "/data/2.5/weather",
                params={"q": city, "appid": api_key, "units": "metric"},
            )
            data = resp.json()
        except httpx.TimeoutException:
            logger.warning("Weather lookup for %r timed out", city)
            UPSTREAM_ERRORS_TOTAL.labels(service="weather").inc()
            return failure(ErrorKind.TIMEOUT, "Weather service timed out.")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Weather lookup for %r failed: %s", city, exc)
            UPSTREAM_ERRORS_TOTAL.labels(service="weather").inc()
            return failure(ErrorKind.UPSTREAM, "Server error fetching weather.")

        if not isinstance(data, dict):
            logger.warning("Unexpected weather payload for %r: %r", city, data)
            UPSTREAM_ERRORS_TOTAL.labels(service="weather").inc()
            return failure(ErrorKind.UPSTREAM, "Server error fetching weather.")

        if str(data.get("cod")) != "200":
            return failure(
                ErrorKind.VALIDATION,
                data.get("message") or "Weather API returned an error.",
            )

        try:
            return success(
                {
                    "city": data["name"],
                    "temperature": data["main"]["temp"],
                    "feels_like": data["main"]["feels_like"],
                    "description": data["weather"][0]["description"],
                }
            )
        except (KeyError, IndexError, TypeError) as exc:
            logger.warning("Unexpected weather payload for %r: %s", city, exc)
            UPSTREAM_ERRORS_TOTAL.labels(service="weather").inc()
            return failure(ErrorKind.UPSTREAM, "Server error fetching weather.")


# Singleton
weather_client = WeatherClient()
