from nulltasker.client.api_client import ApiError, NullTaskerClient, SessionExpiredError
from nulltasker.client.auth import BearerRefreshAuth
from nulltasker.client.storage import (
    FileSessionStore,
    MemorySessionStore,
    SessionState,
    SessionStore,
    SessionStoreError,
)
