"""Tests for importing Gmail events into the calendar."""

from datetime import datetime, timezone

import httpx
import pytest

from _test_helpers import make_message
from core.errors import ProviderError
from core.google_client import GoogleClient
from services.gmail_import import import_gmail_events

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestImportGmailEvents:
    async def test_creates_event_for_matching_message(
        self, google_client, fake_google, sample_message
    ) -> None:
        fake_google.add_message(sample_message)

        result = await import_gmail_events(google_client, now=NOW, time_zone="UTC")

        assert len(result.created) == 1
        assert result.created[0]["summary"] == "Team meeting invite"
        assert result.created[0]["start"]["dateTime"] == "2025-03-10T14:30:00+00:00"
        assert result.scanned == 1

    async def test_second_run_skips_existing_event(
        self, google_client, fake_google, sample_message
    ) -> None:
        fake_google.add_message(sample_message)

        first = await import_gmail_events(google_client, now=NOW, time_zone="UTC")
        second = await import_gmail_events(google_client, now=NOW, time_zone="UTC")

        assert len(first.created) == 1
        assert second.created == []
        assert len(second.skipped_duplicates) == 1
        assert len(fake_google.inserts) == 1

    async def test_duplicate_messages_in_one_run(self, google_client, fake_google) -> None:
        body = "Flight reservation for 4/2/2025 06:10 confirmed."
        fake_google.add_message(make_message("m1", "Flight reservation", body))
        fake_google.add_message(make_message("m2", "Flight reservation", body))

        result = await import_gmail_events(google_client, now=NOW, time_zone="UTC")

        assert len(result.created) == 1
        assert len(result.skipped_duplicates) == 1
        assert len(fake_google.inserts) == 1

    async def test_unmatched_messages_are_reported(self, google_client, fake_google) -> None:
        fake_google.add_message(make_message("m1", "Newsletter", "Nothing to see"))

        result = await import_gmail_events(google_client, now=NOW, time_zone="UTC")

        assert result.unmatched == ["m1"]
        assert fake_google.inserts == []

    async def test_sends_configured_query(self, google_client, fake_google) -> None:
        await import_gmail_events(google_client, query="subject:flight", limit=5, now=NOW)

        params = fake_google.requests[0].url.params
        assert params["q"] == "subject:flight"
        assert params["maxResults"] == "5"

    async def test_provider_failure_propagates(self) -> None:
        def handler(request):
            if request.url.path.endswith("/messages"):
                return httpx.Response(200, json={"messages": [{"id": "m1", "threadId": "t1"}]})
            return httpx.Response(500, json={"error": {"message": "Backend error"}})

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = GoogleClient("ya29.fake-access-token", http_client=http_client)

        with pytest.raises(ProviderError) as exc:
            await import_gmail_events(client, now=NOW)
        assert exc.value.provider_status == 500
