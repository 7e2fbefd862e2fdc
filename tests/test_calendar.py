"""Tests for the Google client and the calendar proxy operations."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from core.errors import (
    InvalidRangeError,
    LoginError,
    MissingProviderGrantError,
    ProviderError,
    ProviderUnavailableError,
    UnauthorizedError,
)
from core.google_client import GoogleClient, exchange_code, verify_id_token
from models.events import EventDraft, UserIdentity, load_zone
from services.calendar import (
    EVENTS_URL,
    clamp_max_results,
    find_duplicates,
    insert_event,
    insert_if_absent,
    list_events,
    parse_event_time,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _draft(title="Planning", start=None, minutes=60) -> EventDraft:
    start = start or datetime(2025, 3, 10, 14, 30, tzinfo=timezone.utc)
    return EventDraft(
        title=title, start=start, end=start + timedelta(minutes=minutes), time_zone="UTC"
    )


def _client_for(handler, **kwargs) -> GoogleClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleClient("ya29.secret-token", http_client=http_client, **kwargs)


class TestGoogleClient:
    def test_for_user_requires_user(self) -> None:
        with pytest.raises(UnauthorizedError):
            GoogleClient.for_user(None)

    def test_for_user_requires_provider_token(self) -> None:
        user = UserIdentity(
            id="u1",
            name="Ada",
            email="ada@example.com",
            image=None,
            provider_token=None,
            created_at="2025-03-01 08:00:00",
        )
        with pytest.raises(MissingProviderGrantError):
            GoogleClient.for_user(user)

    def test_repr_hides_token(self) -> None:
        client = GoogleClient("ya29.secret-token", http_client=httpx.AsyncClient())
        assert "ya29" not in repr(client)

    async def test_sends_bearer_token(self, google_client, fake_google) -> None:
        await google_client.get_json(EVENTS_URL)
        assert fake_google.requests[0].headers["Authorization"] == "Bearer ya29.fake-access-token"

    async def test_get_retried_once_on_timeout(self) -> None:
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client_for(handler, read_retries=1)
        with pytest.raises(ProviderUnavailableError) as exc:
            await client.get_json(EVENTS_URL)

        assert len(calls) == 2
        assert exc.value.retryable is True

    async def test_post_not_retried(self) -> None:
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = _client_for(handler, read_retries=3)
        with pytest.raises(ProviderUnavailableError):
            await client.post_json(EVENTS_URL, {"summary": "x"})
        assert len(calls) == 1

    async def test_retry_recovers(self) -> None:
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"items": []})

        client = _client_for(handler, read_retries=1)
        assert await client.get_json(EVENTS_URL) == {"items": []}

    async def test_error_status_maps_to_provider_error(self) -> None:
        def handler(request):
            return httpx.Response(
                403,
                json={"error": {"message": "Rate limited for Bearer ya29.secret-token"}},
            )

        client = _client_for(handler)
        with pytest.raises(ProviderError) as exc:
            await client.get_json(EVENTS_URL)

        assert exc.value.provider_status == 403
        assert "ya29.secret-token" not in exc.value.message

    async def test_non_object_payload_rejected(self) -> None:
        client = _client_for(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(ProviderError):
            await client.get_json(EVENTS_URL)


class TestOAuthLogin:
    @pytest.fixture(autouse=True)
    def _oauth_client(self, monkeypatch):
        monkeypatch.setattr("core.google_client.GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setattr("core.google_client.GOOGLE_CLIENT_SECRET", "client-secret")

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>Service Unavailable</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_unreadable_token_response(self, response) -> None:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response))
        with pytest.raises(LoginError):
            await exchange_code("4/auth-code", http_client=http_client)

    async def test_unreadable_token_info(self) -> None:
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="oops"))
        )
        with pytest.raises(LoginError):
            await verify_id_token("id-token", http_client=http_client)

    async def test_audience_mismatch(self) -> None:
        claims = {"aud": "someone-else", "email": "ada@example.com"}
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=claims))
        )
        with pytest.raises(LoginError):
            await verify_id_token("id-token", http_client=http_client)


class TestListEvents:
    async def test_window_and_ordering(self, google_client, fake_google) -> None:
        fake_google.add_event("Later", NOW + timedelta(days=5), NOW + timedelta(days=5, hours=1))
        fake_google.add_event("Sooner", NOW + timedelta(days=1), NOW + timedelta(days=1, hours=1))
        fake_google.add_event("Ancient", NOW - timedelta(days=60), NOW - timedelta(days=59))

        events = await list_events(google_client, now=NOW)

        assert [e["summary"] for e in events] == ["Sooner", "Later"]
        params = fake_google.requests[0].url.params
        assert params["timeMin"] == "2025-01-30T12:00:00Z"
        assert params["timeMax"] == "2025-05-30T12:00:00Z"
        assert params["singleEvents"] == "true"
        assert params["orderBy"] == "startTime"
        assert params["maxResults"] == "2500"

    async def test_max_results_clamped(self, google_client, fake_google) -> None:
        await list_events(google_client, max_results=99999, now=NOW)
        await list_events(google_client, max_results=0, now=NOW)

        assert fake_google.requests[0].url.params["maxResults"] == "2500"
        assert fake_google.requests[1].url.params["maxResults"] == "1"

    async def test_follows_page_tokens(self) -> None:
        start = {"dateTime": "2025-03-02T09:00:00Z"}
        pages = {
            None: {"items": [{"id": "a", "start": start}], "nextPageToken": "p2"},
            "p2": {"items": [{"id": "b", "start": start}]},
        }

        def handler(request):
            return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

        events = await list_events(_client_for(handler), max_results=10, now=NOW)
        assert [e["id"] for e in events] == ["a", "b"]

    def test_clamp(self) -> None:
        assert clamp_max_results(None) == 2500
        assert clamp_max_results(-5) == 1
        assert clamp_max_results(10) == 10


class TestParseEventTime:
    def test_all_day_event(self) -> None:
        assert parse_event_time({"date": "2025-03-10"}) == datetime(
            2025, 3, 10, tzinfo=timezone.utc
        )

    def test_offset_preserved(self) -> None:
        parsed = parse_event_time({"dateTime": "2025-03-10T14:30:00+05:30"})
        assert parsed.utcoffset() == timedelta(hours=5, minutes=30)

    def test_garbage(self) -> None:
        assert parse_event_time({"dateTime": "soon"}) is None
        assert parse_event_time(None) is None

    def test_naive_time_uses_event_zone(self) -> None:
        parsed = parse_event_time(
            {"dateTime": "2025-03-10T14:30:00", "timeZone": "Asia/Kolkata"}
        )
        assert parsed.utcoffset() == timedelta(hours=5, minutes=30)

    @pytest.mark.parametrize("zone", ["Europe", "Not/AZone", "", None])
    def test_naive_time_with_unusable_zone_is_utc(self, zone) -> None:
        parsed = parse_event_time({"dateTime": "2025-03-10T14:30:00", "timeZone": zone})
        assert parsed == datetime(2025, 3, 10, 14, 30, tzinfo=timezone.utc)


class TestLoadZone:
    def test_known_zone(self) -> None:
        assert load_zone("Europe/Paris").key == "Europe/Paris"

    @pytest.mark.parametrize(
        "name", ["Europe", "America", "Nowhere/City", "../etc", "", None, 42]
    )
    def test_unusable_names(self, name) -> None:
        assert load_zone(name) is None


class TestInsertEvent:
    async def test_creates_event(self, google_client, fake_google) -> None:
        draft = _draft()
        draft.location = "Room 4"

        event = await insert_event(google_client, draft)

        assert event["id"] == "evt-1"
        assert event["summary"] == "Planning"
        assert event["location"] == "Room 4"
        assert event["start"] == {"dateTime": "2025-03-10T14:30:00+00:00", "timeZone": "UTC"}

    @pytest.mark.parametrize("minutes", [0, -30])
    async def test_rejects_bad_range_without_calling_google(
        self, google_client, fake_google, minutes
    ) -> None:
        with pytest.raises(InvalidRangeError):
            await insert_event(google_client, _draft(minutes=minutes))
        assert fake_google.requests == []


class TestDeduplication:
    async def test_matching_title_and_overlap_is_duplicate(self, google_client, fake_google) -> None:
        draft = _draft(title="Planning")
        fake_google.add_event("  planning ", draft.start + timedelta(minutes=15), draft.end)

        assert len(await find_duplicates(google_client, draft)) == 1

    async def test_different_title_is_not_duplicate(self, google_client, fake_google) -> None:
        draft = _draft(title="Planning")
        fake_google.add_event("Planning retro", draft.start, draft.end)

        assert await find_duplicates(google_client, draft) == []

    async def test_adjacent_event_is_not_duplicate(self, google_client, fake_google) -> None:
        draft = _draft(title="Planning")
        fake_google.add_event("Planning", draft.end, draft.end + timedelta(hours=1))

        assert await find_duplicates(google_client, draft) == []

    async def test_insert_if_absent_is_idempotent(self, google_client, fake_google) -> None:
        first, created_first = await insert_if_absent(google_client, _draft())
        second, created_second = await insert_if_absent(google_client, _draft())

        assert created_first is True
        assert created_second is False
        assert second["id"] == first["id"]
        assert len(fake_google.inserts) == 1
