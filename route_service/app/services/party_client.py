"""
HTTP client for collaborating services (Driver Service, Vehicle Service).

Both services expose the same narrow REST contract:
    GET {base}{resource}/{id}  -> {"data": {...record...}}
    PUT {base}{resource}/{id}  <- full record (no partial patch)

One attempt per call, bounded timeout, one circuit breaker per service.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from route_service.app.core.config import settings
from route_service.app.core.reliability import CircuitBreaker, CircuitOpenError

logger = logging.getLogger(__name__)


class PartyRequestError(Exception):
    """
    A call to a collaborating service failed.

    status_code is the HTTP status returned by the service, or None when no
    response was received (connection error, timeout, open circuit).
    """

    def __init__(self, party: str, party_id: Any, message: str, status_code: Optional[int] = None):
        self.party = party
        self.party_id = party_id
        self.status_code = status_code
        super().__init__(f"{party} {party_id}: {message}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class PartyServerError(PartyRequestError):
    """5xx from a collaborating service; counts against the circuit breaker."""


class PartyClient:
    """Thin async client for one collaborating service."""

    def __init__(
        self,
        name: str,
        base_url: str,
        resource_path: str,
        timeout: float = 5.0,
        breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.name = name
        self.resource_path = resource_path.rstrip("/")
        self.breaker = breaker
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def _path(self, party_id: Any) -> str:
        return f"{self.resource_path}/{party_id}"

    async def _send(self, method: str, party_id: Any, payload: Optional[Dict[str, Any]] = None) -> httpx.Response:
        response = await self._client.request(method, self._path(party_id), json=payload)
        if response.status_code >= 500:
            raise PartyServerError(self.name, party_id, f"{method} returned {response.status_code}", response.status_code)
        if response.status_code >= 400:
            raise PartyRequestError(self.name, party_id, f"{method} returned {response.status_code}", response.status_code)
        return response

    async def _request(self, method: str, party_id: Any, payload: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            if self.breaker is not None:
                return await self.breaker.call(self._send, method, party_id, payload)
            return await self._send(method, party_id, payload)
        except CircuitOpenError as e:
            raise PartyRequestError(self.name, party_id, str(e)) from e
        except httpx.HTTPError as e:
            raise PartyRequestError(self.name, party_id, f"{method} failed: {type(e).__name__}: {e}") from e

    async def fetch(self, party_id: Any) -> Optional[Dict[str, Any]]:
        """
        Fetch one record.

        Returns:
            The "data" object of the response, or None if the body carries
            no usable record (no data or no id)

        Raises:
            PartyRequestError: On transport failure or error status
        """
        response = await self._request("GET", party_id)

        try:
            body = response.json()
        except ValueError:
            logger.warning("%s service returned non-JSON body for id=%s", self.name, party_id)
            return None

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or data.get("id") is None:
            return None
        return data

    async def update(self, party_id: Any, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace a record (full-object PUT).

        Raises:
            PartyRequestError: On transport failure or error status
        """
        response = await self._request("PUT", party_id, record)
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def aclose(self) -> None:
        await self._client.aclose()


_TRACKED_FAILURES = (httpx.TransportError, PartyServerError)

# One breaker per collaborating service, shared across requests
driver_circuit_breaker = CircuitBreaker(
    name="driver-service",
    failure_threshold=settings.breaker_failure_threshold,
    reset_timeout=settings.breaker_reset_timeout,
    tracked_exceptions=_TRACKED_FAILURES,
)
vehicle_circuit_breaker = CircuitBreaker(
    name="vehicle-service",
    failure_threshold=settings.breaker_failure_threshold,
    reset_timeout=settings.breaker_reset_timeout,
    tracked_exceptions=_TRACKED_FAILURES,
)


async def get_driver_client():
    """FastAPI dependency yielding a Driver Service client."""
    client = PartyClient(
        name="driver",
        base_url=settings.driver_service_url,
        resource_path="/api/drivers",
        timeout=settings.party_timeout_seconds,
        breaker=driver_circuit_breaker,
    )
    try:
        yield client
    finally:
        await client.aclose()


async def get_vehicle_client():
    """FastAPI dependency yielding a Vehicle Service client."""
    client = PartyClient(
        name="vehicle",
        base_url=settings.vehicle_service_url,
        resource_path="/api/vehicles",
        timeout=settings.party_timeout_seconds,
        breaker=vehicle_circuit_breaker,
    )
    try:
        yield client
    finally:
        await client.aclose()
