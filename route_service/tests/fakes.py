"""
In-memory stand-ins for the Driver and Vehicle services.
"""

import json
import re

import httpx

from route_service.app.services.party_client import PartyClient


class FakePartyService:
    """
    In-memory stand-in for the Driver or Vehicle service.

    get_failure / put_failure: None for normal behavior, an int to answer
    with that HTTP status, or "connect" to simulate an unreachable service.
    """

    def __init__(self, resource: str, records: dict):
        self.resource = resource
        self.records = {int(k): dict(v) for k, v in records.items()}
        self.get_failure = None
        self.put_failure = None
        self.gets = []
        self.puts = []
        self._path = re.compile(rf"^/api/{resource}/(\d+)$")

    def handle(self, request: httpx.Request) -> httpx.Response:
        match = self._path.match(request.url.path)
        if not match:
            return httpx.Response(404, json={"message": "Not Found"})
        party_id = int(match.group(1))

        if request.method == "GET":
            self.gets.append(party_id)
            return self._answer(request, self.get_failure) or self._get(party_id)

        if request.method == "PUT":
            body = json.loads(request.content)
            self.puts.append((party_id, body))
            return self._answer(request, self.put_failure) or self._put(party_id, body)

        return httpx.Response(405)

    def _answer(self, request, failure):
        if failure is None:
            return None
        if failure == "connect":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(failure, json={"message": "failure"})

    def _get(self, party_id):
        if party_id not in self.records:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"data": self.records[party_id]})

    def _put(self, party_id, body):
        if party_id not in self.records:
            return httpx.Response(404, json={"message": "Not Found"})
        self.records[party_id] = {**body, "id": party_id}
        return httpx.Response(200, json={"data": self.records[party_id]})


def make_party_client(name: str, service: FakePartyService) -> PartyClient:
    return PartyClient(
        name=name,
        base_url=f"http://{name}-service",
        resource_path=f"/api/{service.resource}",
        transport=httpx.MockTransport(service.handle),
    )


