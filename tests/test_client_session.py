from __future__ import annotations

import json
from datetime import timedelta
from typing import List, Optional, Tuple

import httpx
import pytest

from conftest import ALICE

from nulltasker.client import (
    ApiError,
    BearerRefreshAuth,
    FileSessionStore,
    MemorySessionStore,
    NullTaskerClient,
    SessionExpiredError,
    SessionState,
    SessionStoreError,
)


@pytest.fixture
def api(client) -> NullTaskerClient:
    return NullTaskerClient(http_client=client)


def _expired_access_token(client, email: str) -> str:
    user = client.app.state.storage.users.get_by_email(email)
    return client.app.state.token_service.issue_access_token(user, expires_delta=timedelta(seconds=-30))


def test_login_stores_session_and_attaches_bearer(api: NullTaskerClient) -> None:
    api.register(ALICE["displayName"], ALICE["email"], ALICE["password"])
    user = api.login(ALICE["email"], ALICE["password"])

    assert api.session.access_token and api.session.refresh_token
    assert api.session.user["id"] == user["id"]

    created = api.create_task(project="default", title="From client")
    assert api.get_task(created["id"])["title"] == "From client"
    assert [t["id"] for t in api.list_tasks(project="default")] == [created["id"]]
    assert api.update_task(created["id"], status="review")["status"] == "review"
    assert api.me()["email"] == ALICE["email"]
    assert [p["id"] for p in api.list_projects()] == ["default"]
    assert api.get_project("default")["name"] == "Default Project"
    assert api.delete_task(created["id"]) is None


def test_expired_access_token_is_refreshed_silently(client, api: NullTaskerClient) -> None:
    api.register(ALICE["displayName"], ALICE["email"], ALICE["password"])
    api.login(ALICE["email"], ALICE["password"])
    stale = _expired_access_token(client, ALICE["email"])
    api.store.update(access_token=stale)

    tasks = api.list_tasks()

    assert tasks == []
    assert api.session.access_token not in (None, stale)


def test_failed_refresh_clears_session(client, api: NullTaskerClient) -> None:
    api.register(ALICE["displayName"], ALICE["email"], ALICE["password"])
    api.login(ALICE["email"], ALICE["password"])
    api.store.update(access_token=_expired_access_token(client, ALICE["email"]),
                     refresh_token="not-a-valid-token")

    with pytest.raises(SessionExpiredError):
        api.list_tasks()

    assert api.session == SessionState()


def test_call_without_session_is_reported_as_expired(api: NullTaskerClient) -> None:
    with pytest.raises(SessionExpiredError) as excinfo:
        api.list_tasks()
    assert excinfo.value.error_code == "SESSION_EXPIRED"


def test_api_errors_carry_error_code(api: NullTaskerClient) -> None:
    api.register(ALICE["displayName"], ALICE["email"], ALICE["password"])

    with pytest.raises(ApiError) as excinfo:
        api.register(ALICE["displayName"], ALICE["email"], ALICE["password"])
    assert excinfo.value.status_code == 409
    assert excinfo.value.error_code == "EMAIL_EXISTS"

    # A failed login is a plain error, never a refresh attempt
    with pytest.raises(ApiError) as excinfo:
        api.login(ALICE["email"], "Wr0ngPassword")
    assert not isinstance(excinfo.value, SessionExpiredError)
    assert excinfo.value.status_code == 401


def test_logout_clears_local_session(api: NullTaskerClient) -> None:
    api.register(ALICE["displayName"], ALICE["email"], ALICE["password"])
    api.login(ALICE["email"], ALICE["password"])

    api.logout()

    assert api.session == SessionState()


def test_file_session_store_survives_new_instances(tmp_path) -> None:
    path = tmp_path / "session.json"
    FileSessionStore(path).save(SessionState(access_token="a", refresh_token="r", user={"id": "u"}))

    restored = FileSessionStore(path).load()
    assert restored == SessionState(access_token="a", refresh_token="r", user={"id": "u"})

    FileSessionStore(path).clear()
    assert FileSessionStore(path).load() == SessionState()
    assert not path.exists()


def test_corrupt_session_file_raises_client_error(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileSessionStore(path)

    with pytest.raises(SessionStoreError):
        store.load()

    store.clear()
    assert store.load() == SessionState()


class _Recorder:
    def __init__(self, statuses: List[int], refresh_status: int = 200):
        self.statuses = list(statuses)
        self.refresh_status = refresh_status
        # (path, Authorization header, body) as seen when each request was sent
        self.calls: List[Tuple[str, Optional[str], bytes]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.url.path, request.headers.get("Authorization"), request.content))
        if request.url.path == "/api/v1/refresh":
            return httpx.Response(self.refresh_status, json={"accessToken": "fresh"})
        return httpx.Response(self.statuses.pop(0), json={})


def _mock_client(recorder: _Recorder, store, on_expired=None) -> httpx.Client:
    auth = BearerRefreshAuth(store, on_session_expired=on_expired)
    return httpx.Client(base_url="http://api.local", transport=httpx.MockTransport(recorder), auth=auth)


def test_refresh_is_attempted_once_per_call() -> None:
    store = MemorySessionStore()
    store.save(SessionState(access_token="stale", refresh_token="r"))
    recorder = _Recorder([401, 401, 401, 401])

    with _mock_client(recorder, store) as http:
        response = http.get("/api/v1/tasks")

    assert response.status_code == 401
    paths = [path for path, _, _ in recorder.calls]
    assert paths == ["/api/v1/tasks", "/api/v1/refresh", "/api/v1/tasks"]
    assert recorder.calls[0][1] == "Bearer stale"
    assert recorder.calls[-1][1] == "Bearer fresh"
    assert json.loads(recorder.calls[1][2]) == {"refreshToken": "r"}


def test_retry_uses_refreshed_token() -> None:
    store = MemorySessionStore()
    store.save(SessionState(access_token="stale", refresh_token="r"))
    recorder = _Recorder([401, 200])

    with _mock_client(recorder, store) as http:
        response = http.get("/api/v1/tasks")

    assert response.status_code == 200
    assert recorder.calls[0][1] == "Bearer stale"
    assert recorder.calls[2][1] == "Bearer fresh"
    assert store.load().access_token == "fresh"


def test_forbidden_without_token_expires_without_refresh() -> None:
    expired: List[bool] = []
    store = MemorySessionStore()
    store.save(SessionState(refresh_token="r"))
    recorder = _Recorder([403])

    with _mock_client(recorder, store, on_expired=lambda: expired.append(True)) as http:
        response = http.get("/api/v1/tasks")

    assert response.status_code == 403
    assert expired == [True]
    assert [path for path, _, _ in recorder.calls] == ["/api/v1/tasks"]
    assert store.load() == SessionState()


def test_auth_endpoints_never_trigger_refresh() -> None:
    store = MemorySessionStore()
    store.save(SessionState(access_token="stale", refresh_token="r"))
    recorder = _Recorder([401])

    with _mock_client(recorder, store) as http:
        response = http.post("/api/v1/login", json={})

    assert response.status_code == 401
    assert len(recorder.calls) == 1
    assert store.load().refresh_token == "r"
