"""
tests/test_activity_client.py — LeetCode Adapter Tests
=======================================================

Drives :class:`LeetCodeClient` through ``httpx.MockTransport`` so no
network is touched.  Checks the failure mapping (not found / transport /
malformed) and the fail-closed existence check.
"""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import NOW, active_days, run_async
from streakboard.errors import MalformedCalendar, TransportFailure, UserNotFound
from streakboard.services.activity_client import LeetCodeClient


def _calendar_payload(calendar: dict[int, int] | None = None, streak: int = 7, total: int = 40) -> dict:
    return {
        "data": {
            "matchedUser": {
                "userCalendar": {
                    "activeYears": [2025, 2026],
                    "streak": streak,
                    "totalActiveDays": total,
                    "submissionCalendar": json.dumps(
                        {str(k): v for k, v in (calendar or {}).items()}
                    ),
                }
            }
        }
    }


def _client(handler) -> LeetCodeClient:
    return LeetCodeClient("https://leetcode.test/graphql", timeout=1, transport=httpx.MockTransport(handler))


def _json_handler(payload, status: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(json.loads(request.content))
        return httpx.Response(status, json=payload)
    return handler


class TestFetchActivity:
    def test_parses_report(self):
        calendar = active_days(NOW, 3)
        client = _client(_json_handler(_calendar_payload(calendar, streak=11, total=52)))
        report = run_async(client.fetch_activity("alice", 2026))
        assert report.username == "alice"
        assert report.best_streak == 11
        assert report.total_active_days == 52
        assert report.calendar == calendar
        assert report.active_years == (2025, 2026)

    def test_sends_username_and_year(self):
        seen: list = []
        client = _client(_json_handler(_calendar_payload(), seen=seen))
        run_async(client.fetch_activity("alice", 2026))
        assert seen[0]["variables"] == {"username": "alice", "year": 2026}
        assert "userCalendar" in seen[0]["query"]

    def test_null_submission_calendar_is_empty(self):
        payload = _calendar_payload()
        payload["data"]["matchedUser"]["userCalendar"]["submissionCalendar"] = None
        report = run_async(_client(_json_handler(payload)).fetch_activity("alice", 2026))
        assert report.calendar == {}

    def test_unknown_user(self):
        payload = {"data": {"matchedUser": None}, "errors": [{"message": "That user does not exist."}]}
        with pytest.raises(UserNotFound) as exc_info:
            run_async(_client(_json_handler(payload)).fetch_activity("ghost", 2026))
        assert exc_info.value.username == "ghost"

    def test_http_error_status(self):
        with pytest.raises(TransportFailure, match="HTTP 503"):
            run_async(_client(_json_handler({}, status=503)).fetch_activity("alice", 2026))

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)
        with pytest.raises(TransportFailure):
            run_async(_client(handler).fetch_activity("alice", 2026))

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)
        with pytest.raises(TransportFailure):
            run_async(_client(handler).fetch_activity("alice", 2026))

    def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>rate limited</html>")
        with pytest.raises(TransportFailure, match="non-JSON"):
            run_async(_client(handler).fetch_activity("alice", 2026))

    def test_graphql_errors_without_data(self):
        payload = {"data": None, "errors": [{"message": "internal"}]}
        with pytest.raises(TransportFailure, match="internal"):
            run_async(_client(_json_handler(payload)).fetch_activity("alice", 2026))

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"data": {"matchedUser": {"userCalendar": {"streak": "lots"}}}},
            {"data": {"matchedUser": {"userCalendar": None}}},
            {"data": {"matchedUser": {"userCalendar": {"streak": -1, "totalActiveDays": 0}}}},
        ],
    )
    def test_schema_violations_are_malformed(self, payload):
        with pytest.raises(MalformedCalendar):
            run_async(_client(_json_handler(payload)).fetch_activity("alice", 2026))

    def test_unparseable_calendar_is_malformed(self):
        payload = _calendar_payload()
        payload["data"]["matchedUser"]["userCalendar"]["submissionCalendar"] = "{not json"
        with pytest.raises(MalformedCalendar) as exc_info:
            run_async(_client(_json_handler(payload)).fetch_activity("alice", 2026))
        assert exc_info.value.username == "alice"


class TestUserExists:
    def test_existing_user(self):
        payload = {"data": {"matchedUser": {"username": "alice"}}}
        assert run_async(_client(_json_handler(payload)).user_exists("alice")) is True

    def test_missing_user(self):
        payload = {"data": {"matchedUser": None}}
        assert run_async(_client(_json_handler(payload)).user_exists("ghost")) is False

    def test_transport_failure_fails_closed(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)
        assert run_async(_client(handler).user_exists("alice")) is False

    def test_server_error_fails_closed(self):
        assert run_async(_client(_json_handler({}, status=500)).user_exists("alice")) is False

    def test_garbage_payload_fails_closed(self):
        assert run_async(_client(_json_handler(["?"])).user_exists("alice")) is False
