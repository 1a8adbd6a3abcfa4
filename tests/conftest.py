"""Shared fixtures: member factories and an in-memory Member Directory Service."""

import json
from typing import Any

import httpx
import pytest

from committee.models import Member
from committee.services.directory_client import MemberDirectoryClient

DIRECTORY_URL = "http://directory.test"


def build_member_json(
    member_id: str,
    name: str,
    months: list[str],
    contributions: list[float] | None = None,
    status: dict[str, bool] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Member record as the directory serves it."""
    data = {
        "_id": member_id,
        "name": name,
        "bankName": "Committee Bank",
        "bankAccountNo": f"ACC-{member_id}",
        "userType": "User",
        "contributions": [100] * len(months) if contributions is None else contributions,
        "receivableMonths": months,
        "paymentStatus": status or {},
    }
    data.update(extra)
    return data


class FakeDirectory:
    """In-memory directory served through httpx.MockTransport."""

    def __init__(self, members: list[dict[str, Any]] | None = None):
        self.members = {m["_id"]: m for m in members or []}
        self.calls: list[tuple[str, str, Any]] = []
        self.fail: set[tuple[str, str]] = set()
        self._next_id = 100

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.calls.append((method, path, body))

        if (method, path) in self.fail:
            return httpx.Response(500, text="directory error")

        if method == "GET" and path == "/members":
            return httpx.Response(200, json=list(self.members.values()))

        if method == "POST" and path == "/members/create":
            self._next_id += 1
            member_id = str(self._next_id)
            self.members[member_id] = {"_id": member_id, "paymentStatus": {}, **body}
            return httpx.Response(201, json=self.members[member_id])

        parts = path.strip("/").split("/")
        if method == "PATCH" and parts[0] == "members" and len(parts) in (2, 3):
            member = self.members.get(parts[1])
            if member is None:
                return httpx.Response(404, json={"message": "not found"})
            if len(parts) == 3 and parts[2] == "payment-status":
                key = f"{body['month']}_{body['receiverId']}"
                member.setdefault("paymentStatus", {})[key] = body["paid"]
                return httpx.Response(200, json=member)
            if len(parts) == 2:
                member.update(body)
                return httpx.Response(200, json=member)

        return httpx.Response(404, json={"message": "no route"})

    def payment_calls(self) -> list[tuple[str, str, bool]]:
        """(payer, receiver, paid) for every payment-status PATCH, in order."""
        return [
            (path.split("/")[2], body["receiverId"], body["paid"])
            for method, path, body in self.calls
            if method == "PATCH" and path.endswith("/payment-status")
        ]


@pytest.fixture
def member_json():
    """Factory for directory member records."""
    return build_member_json


@pytest.fixture
def make_member():
    """Factory for Member models."""

    def _make(*args: Any, **kwargs: Any) -> Member:
        return Member.model_validate(build_member_json(*args, **kwargs))

    return _make


@pytest.fixture
def roster_json():
    """Alice and Bob receive in May, Carol in June."""
    return [
        build_member_json("1", "Alice", ["May"], [100]),
        build_member_json("2", "Bob", ["May"], [200]),
        build_member_json("3", "Carol", ["June"], [50]),
    ]


@pytest.fixture
def directory(roster_json):
    return FakeDirectory(roster_json)


@pytest.fixture
def directory_client(directory):
    """Directory client wired to the in-memory directory."""
    return MemberDirectoryClient(
        base_url=DIRECTORY_URL, transport=httpx.MockTransport(directory.handle)
    )
