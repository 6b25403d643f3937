"""Auth gateway interface and its HTTP implementation against the backend."""

from __future__ import annotations

import abc
import hashlib
from collections.abc import Callable
from typing import Any

import httpx
import structlog

from .config import ClientConfig
from .errors import ApiError, ConfigurationError, DestinationRejected, NetworkError, RecipientRejected, ServiceError
from .models import AppUser, RemoteState
from .storage import KeyValueStore
from .transports import EmailRequest, EmailTransport

logger = structlog.get_logger()

SESSION_TOKEN_KEY = "mindtossSessionToken"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

SessionListener = Callable[[str, "AppUser | None"], None]


def hash_password(plain: str) -> str:
    """SHA-256 hex digest sent instead of the password (wire contract)."""
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


class AuthGateway(abc.ABC):
    """The narrow auth surface the pipeline depends on."""

    @abc.abstractmethod
    async def sign_in(self, email: str, password: str) -> AppUser: ...

    @abc.abstractmethod
    async def sign_out(self) -> None: ...

    @abc.abstractmethod
    async def get_session(self) -> AppUser | None: ...

    @abc.abstractmethod
    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""

    @abc.abstractmethod
    async def invoke_account_deletion(self) -> None: ...


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if isinstance(payload.get(key), str) and payload[key]:
                return payload[key]
    return f"Request failed ({response.status_code})"


class ApiClient(AuthGateway, EmailTransport):
    """Talks to the MindToss backend with a bearer session token.

    The token lives in the device key-value store so it survives restarts.
    A 401 on any authenticated call clears it and notifies listeners.
    """

    def __init__(
        self,
        config: ClientConfig,
        storage: KeyValueStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._listeners: list[SessionListener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        kwargs: dict[str, Any] = {"base_url": self._config.api_base_url}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        if self._config.timeout_seconds is not None:
            kwargs["timeout"] = httpx.Timeout(self._config.timeout_seconds)
        self._client = httpx.AsyncClient(**kwargs)
        logger.info("api_client_started", base_url=self._config.api_base_url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.info("api_client_stopped")

    # ------------------------------------------------------------------
    # Token + listeners
    # ------------------------------------------------------------------

    @property
    def token(self) -> str | None:
        return self._storage.get(SESSION_TOKEN_KEY)

    def _set_token(self, token: str | None) -> None:
        if token:
            self._storage.set(SESSION_TOKEN_KEY, token)
        else:
            self._storage.remove(SESSION_TOKEN_KEY)

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: str, user: AppUser | None) -> None:
        for listener in list(self._listeners):
            listener(event, user)

    def _drop_session(self) -> None:
        had_token = self.token is not None
        self._set_token(None)
        if had_token:
            logger.info("session_dropped")
            self._emit(SIGNED_OUT, None)

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _raw(
        self,
        method: str,
        path: str,
        *,
        body: dict | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        if self._client is None:
            raise AssertionError("Client not started")
        headers = {}
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = await self._client.request(method, path, json=body, headers=headers)
        if response.status_code == 401 and authenticated:
            self._drop_session()
        return response

    async def _call(
        self,
        method: str,
        path: str,
        *,
        body: dict | None = None,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        try:
            response = await self._raw(method, path, body=body, authenticated=authenticated)
        except httpx.RequestError as exc:
            raise ApiError(f"Network error: {exc}") from exc
        if response.is_error:
            raise ApiError(_error_message(response), status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError("Backend returned an invalid response.", response.status_code) from exc
        return payload if isinstance(payload, dict) else {}

    def _complete_sign_in(self, payload: dict[str, Any]) -> AppUser:
        user = AppUser.model_validate(payload["user"])
        self._set_token(payload["sessionToken"])
        logger.info("signed_in", user_id=user.id)
        self._emit(SIGNED_IN, user)
        return user

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str) -> AppUser:
        payload = await self._call(
            "POST",
            "/api/auth/sign-up",
            body={"email": email, "passwordHash": hash_password(password)},
            authenticated=False,
        )
        return self._complete_sign_in(payload)

    async def sign_in(self, email: str, password: str) -> AppUser:
        payload = await self._call(
            "POST",
            "/api/auth/sign-in",
            body={"email": email, "passwordHash": hash_password(password)},
            authenticated=False,
        )
        return self._complete_sign_in(payload)

    async def sign_in_with_apple(
        self,
        apple_user_id: str,
        email: str | None = None,
        given_name: str | None = None,
        family_name: str | None = None,
    ) -> AppUser:
        if not apple_user_id:
            raise ApiError("Apple Sign In did not return a user identifier.")
        body = {
            "appleUserId": apple_user_id,
            "email": email,
            "givenName": given_name,
            "familyName": family_name,
        }
        payload = await self._call(
            "POST",
            "/api/auth/apple",
            body={k: v for k, v in body.items() if v is not None},
            authenticated=False,
        )
        return self._complete_sign_in(payload)

    async def get_session(self) -> AppUser | None:
        if not self.token:
            return None
        try:
            payload = await self._call("GET", "/api/auth/session")
        except ApiError as exc:
            if exc.status_code == 401:
                return None
            raise
        session = payload.get("session") or {}
        if not session.get("user"):
            return None
        return AppUser.model_validate(session["user"])

    async def sign_out(self) -> None:
        if self.token:
            try:
                await self._call("POST", "/api/auth/sign-out")
            except ApiError as exc:
                logger.warning("remote_sign_out_failed", error=str(exc))
        self._set_token(None)
        self._emit(SIGNED_OUT, None)

    async def invoke_account_deletion(self) -> None:
        if not self.token:
            raise ApiError("Not authenticated.", status_code=401)
        await self._call("POST", "/api/account/delete")
        self._set_token(None)
        logger.info("account_deleted")
        self._emit(SIGNED_OUT, None)

    # ------------------------------------------------------------------
    # Remote state
    # ------------------------------------------------------------------

    async def load_state(self) -> RemoteState | None:
        if not self.token:
            return None
        payload = await self._call("GET", "/api/state")
        record = payload.get("state")
        if not record:
            return None
        try:
            return RemoteState.from_wire(record)
        except ValueError as exc:
            raise ApiError(str(exc)) from exc

    async def save_state(self, state: RemoteState) -> None:
        if not self.token:
            return
        await self._call("POST", "/api/state", body=state.to_wire())

    # ------------------------------------------------------------------
    # Email (EmailTransport)
    # ------------------------------------------------------------------

    async def send(self, request: EmailRequest) -> str:
        try:
            response = await self._raw("POST", "/api/send-email", body=request.to_wire())
        except httpx.RequestError as exc:
            raise NetworkError(str(exc)) from exc

        try:
            payload = response.json()
        except ValueError:
            raise ServiceError(f"Email service returned an invalid response (HTTP {response.status_code})")
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error:
            detail = payload.get("error") or payload.get("detail") or f"HTTP {response.status_code}"
            code = payload.get("code")
            if code == RecipientRejected.code:
                raise RecipientRejected(str(detail))
            if code == DestinationRejected.code:
                raise DestinationRejected(payload.get("status", "invalid"), str(detail))
            if response.status_code == 500 and code == ConfigurationError.code:
                raise ConfigurationError(str(detail))
            raise ServiceError(str(detail))

        request_id = payload.get("request_id")
        if request_id is None:
            raise ServiceError("Email service response did not include a request id")
        return str(request_id)
