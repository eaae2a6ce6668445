"""Test doubles for the Graph API client."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class GraphCall:
    method: str
    path: str
    access_token: str
    params: Dict[str, Any] = field(default_factory=dict)
    body: Dict[str, str] = field(default_factory=dict)


class FakeGraphClient:
    """Stands in for GraphClient: records calls, replays queued results.

    A queued exception is raised instead of returned.
    """

    def __init__(self):
        self.calls: List[GraphCall] = []
        self._responses: List[Any] = []

    def queue(self, *responses: Any) -> None:
        self._responses.extend(responses)

    async def call(self, method, path, access_token, params=None, body=None):
        self.calls.append(GraphCall(method, path, access_token, params or {}, body or {}))
        if not self._responses:
            raise AssertionError(f"Unexpected Graph call: {method} {path}")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self) -> None:
        pass

    def calls_with(self, method: str) -> List[GraphCall]:
        return [c for c in self.calls if c.method == method]
