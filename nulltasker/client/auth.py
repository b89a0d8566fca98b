"""
httpx authentication flow with silent token refresh.

Every request carries the stored access token. When a protected call comes
back 401 the flow spends the request's retry budget: it exchanges the refresh
token for a new access token and replays the original request once. If that
is impossible the session is cleared and ``on_session_expired`` is invoked.
"""
import logging
from typing import Callable, Generator, Optional, Tuple

import httpx

from nulltasker.client.storage import SessionStore

logger = logging.getLogger(__name__)

# Calls that must never trigger a refresh
AUTH_ENDPOINTS: Tuple[str, ...] = ("/login", "/register", "/refresh")


class BearerRefreshAuth(httpx.Auth):
    requires_response_body = True

    def __init__(
        self,
        store: SessionStore,
        refresh_path: str = "/api/v1/refresh",
        on_session_expired: Optional[Callable[[], None]] = None,
        max_retries: int = 1,
    ):
        self.store = store
        self.refresh_path = refresh_path
        self.on_session_expired = on_session_expired
        self.max_retries = max_retries

    @staticmethod
    def is_auth_endpoint(request: httpx.Request) -> bool:
        return request.url.path.endswith(AUTH_ENDPOINTS)

    def expire_session(self) -> None:
        self.store.clear()
        logger.info("Session expired; stored tokens cleared")
        if self.on_session_expired is not None:
            self.on_session_expired()

    def build_refresh_request(self, request: httpx.Request, refresh_token: str) -> httpx.Request:
        return httpx.Request(
            "POST",
            request.url.join(self.refresh_path),
            json={"refreshToken": refresh_token},
        )

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        state = self.store.load()
        if state.access_token:
            request.headers["Authorization"] = f"Bearer {state.access_token}"

        response = yield request
        if self.is_auth_endpoint(request):
            return

        # Forbidden without any token means there never was a session
        if response.status_code == 403 and not state.access_token:
            self.expire_session()
            return

        retries_left = self.max_retries
        while response.status_code == 401 and retries_left > 0:
            retries_left -= 1
            if not state.refresh_token:
                self.expire_session()
                return

            refresh_response = yield self.build_refresh_request(request, state.refresh_token)
            if refresh_response.status_code != 200:
                self.expire_session()
                return

            access_token = refresh_response.json().get("accessToken")
            if not access_token:
                self.expire_session()
                return
            state = self.store.update(access_token=access_token)
            logger.debug("Access token refreshed; replaying %s %s", request.method, request.url.path)

            request.headers["Authorization"] = f"Bearer {access_token}"
            response = yield request
