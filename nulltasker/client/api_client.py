"""
Python client for the NullTasker API.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from nulltasker.client.auth import BearerRefreshAuth
from nulltasker.client.storage import MemorySessionStore, SessionState, SessionStore

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, error_code: Optional[str], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            response.status_code,
            body.get("errorCode"),
            body.get("message") or response.reason_phrase,
        )


class SessionExpiredError(ApiError):
    """The session could not be refreshed; the user has to log in again."""


class NullTaskerClient:
    """
    Thin wrapper over an ``httpx.Client``.

    Tokens live in ``store``; every call goes through BearerRefreshAuth, so an
    expired access token is refreshed transparently once per call.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        store: Optional[SessionStore] = None,
        http_client: Optional[httpx.Client] = None,
        api_prefix: str = "/api/v1",
        timeout: float = 10.0,
    ):
        self.api_prefix = api_prefix.rstrip("/")
        self.store = store or MemorySessionStore()
        self.http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._session_expired = False
        self.auth = BearerRefreshAuth(
            self.store,
            refresh_path=f"{self.api_prefix}/refresh",
            on_session_expired=self._mark_session_expired,
        )

    def _mark_session_expired(self) -> None:
        self._session_expired = True

    def _request(self, method: str, path: str, **kwargs) -> Any:
        self._session_expired = False
        response = self.http.request(method, f"{self.api_prefix}{path}", auth=self.auth, **kwargs)
        if self._session_expired:
            raise SessionExpiredError(response.status_code, "SESSION_EXPIRED",
                                      "Session expired, please log in again")
        if response.is_error:
            raise ApiError.from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "NullTaskerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- session ---

    @property
    def session(self) -> SessionState:
        return self.store.load()

    def register(self, display_name: str, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/register", json={
            "displayName": display_name,
            "email": email,
            "password": password,
        })

    def login(self, email: str, password: str, remember_me: bool = False) -> Dict[str, Any]:
        data = self._request("POST", "/login", json={
            "email": email,
            "password": password,
            "rememberMe": remember_me,
        })
        self.store.save(SessionState(
            access_token=data["accessToken"],
            refresh_token=data["refreshToken"],
            user=data["user"],
        ))
        return data["user"]

    def logout(self) -> None:
        """Tell the server, then drop the local session whatever it answered."""
        try:
            if self.store.load().access_token:
                self._request("POST", "/logout")
        except ApiError as exc:
            logger.info("Server-side logout failed (%s); clearing local session", exc.status_code)
        finally:
            self.store.clear()

    def me(self) -> Dict[str, Any]:
        user = self._request("GET", "/user")
        self.store.update(user=user)
        return user

    # --- tickets ---

    def list_tasks(self, **filters: Optional[str]) -> List[Dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/tasks", params=params)

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")

    def create_task(self, **fields: Any) -> Dict[str, Any]:
        return self._request("POST", "/tasks", json=fields)

    def update_task(self, task_id: str, **changes: Any) -> Dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}", json=changes)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    # --- projects ---

    def list_projects(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/projects")

    def get_project(self, project_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/projects/{project_id}")
