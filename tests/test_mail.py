"""Tests for Gmail message search and body decoding."""

from datetime import datetime, timezone

from _test_helpers import encode_body, make_message
from services.mail import (
    get_body_text,
    get_header,
    get_message,
    get_message_timestamp,
    search_messages,
)


class TestBodyText:
    def test_prefers_plain_part(self) -> None:
        message = make_message("m1", "Invite", "Plain body")
        assert get_body_text(message) == "Plain body"

    def test_falls_back_to_html(self) -> None:
        message = {
            "payload": {
                "mimeType": "multipart/alternative",
                "parts": [
                    {
                        "mimeType": "text/html",
                        "body": {"data": encode_body("<style>p{}</style><p>Dinner &amp; drinks</p>")},
                    }
                ],
            }
        }
        assert get_body_text(message) == "Dinner & drinks"

    def test_nested_parts(self) -> None:
        message = {
            "payload": {
                "mimeType": "multipart/mixed",
                "parts": [
                    {
                        "mimeType": "multipart/alternative",
                        "parts": [{"mimeType": "text/plain", "body": {"data": encode_body("deep")}}],
                    }
                ],
            }
        }
        assert get_body_text(message) == "deep"

    def test_top_level_body(self) -> None:
        message = {"payload": {"mimeType": "text/plain", "body": {"data": encode_body("top")}}}
        assert get_body_text(message) == "top"

    def test_empty_message(self) -> None:
        assert get_body_text({}) == ""


class TestHeaders:
    def test_lookup_is_case_insensitive(self) -> None:
        message = make_message("m1", "Flight booked", "body")
        assert get_header(message, "subject") == "Flight booked"
        assert get_header(message, "Reply-To") is None

    def test_timestamp_from_internal_date(self) -> None:
        received = datetime(2025, 3, 3, 16, 45, tzinfo=timezone.utc)
        assert get_message_timestamp(make_message("m1", "s", "b", received)) == received

    def test_timestamp_from_date_header(self) -> None:
        message = {
            "payload": {"headers": [{"name": "Date", "value": "Mon, 3 Mar 2025 16:45:00 +0000"}]}
        }
        assert get_message_timestamp(message) == datetime(2025, 3, 3, 16, 45, tzinfo=timezone.utc)

    def test_no_timestamp(self) -> None:
        assert get_message_timestamp({"payload": {"headers": []}}) is None


class TestSearch:
    async def test_search_returns_summaries(self, google_client, fake_google) -> None:
        fake_google.add_message(make_message("m1", "Invite", "body"))
        fake_google.add_message(make_message("m2", "Flight", "body"))

        summaries = await search_messages(google_client, "subject:invite", limit=10)

        assert summaries == [
            {"id": "m1", "threadId": "thread-m1"},
            {"id": "m2", "threadId": "thread-m2"},
        ]
        params = fake_google.requests[0].url.params
        assert params["q"] == "subject:invite"
        assert params["maxResults"] == "10"

    async def test_search_limit_clamped(self, google_client, fake_google) -> None:
        await search_messages(google_client, "q", limit=10_000)
        assert fake_google.requests[0].url.params["maxResults"] == "500"

    async def test_get_message_requests_full_format(self, google_client, fake_google) -> None:
        fake_google.add_message(make_message("m1", "Invite", "body"))

        message = await get_message(google_client, "m1")

        assert message["id"] == "m1"
        assert fake_google.requests[0].url.params["format"] == "full"
