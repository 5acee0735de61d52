"""Authenticated session against a MODX manager connector."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from modx_mcp.errors import (
    DiscoveryError,
    MalformedResponseError,
    RemoteHttpError,
    RemoteRequestError,
    SessionExpiredError,
    UnauthenticatedError,
)
from modx_mcp.models import (
    LoginResult,
    LogoutResult,
    ProcessorList,
    ProcessorResult,
    SessionInfo,
)
from modx_mcp.settings import Settings, normalize_path

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"
AUTH_FIELD = "HTTP_MODAUTH"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def encode_form_value(value: Any) -> str:
    """Render one caller-supplied value as a form field."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    return str(value)


@dataclass
class SessionState:
    """Mutable session fields owned by :class:`ModxSessionClient`."""

    base_url: str
    connector_path: str
    admin_path: str
    authenticated: bool = False
    auth_token: str = ""
    user: Any = None
    login_time: datetime | None = None
    last_activity: datetime | None = None

    @property
    def connector_url(self) -> str:
        return f"{self.base_url}{self.connector_path}"

    @property
    def referer_url(self) -> str:
        return f"{self.base_url}{self.admin_path}"

    def reset(self) -> None:
        """Drop every field derived from the last login."""
        self.authenticated = False
        self.auth_token = ""
        self.user = None
        self.login_time = None
        self.last_activity = None


class ModxSessionClient:
    """Single authenticated HTTP session against a MODX installation.

    The client owns the cookie jar, the manager auth token and the processor
    catalog cache. One instance corresponds to one remote session; it is
    mutated only by :meth:`authenticate`, the 401/403 path of authenticated
    calls, and :meth:`logout`.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a client for the configured installation.

        Args:
            settings: Connection settings.
            transport: Optional transport override, used to fake the remote
                side in tests.

        """
        self._settings = settings
        self._state = SessionState(
            base_url=settings.base_url.rstrip("/"),
            connector_path=normalize_path(settings.connector_path),
            admin_path=normalize_path(settings.admin_path),
        )
        self._processors: ProcessorList | None = None
        self._transport = transport
        self._http = self._open_http()

    def _open_http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self._settings.timeout,
            follow_redirects=True,
            headers={
                "User-Agent": self._settings.user_agent,
                "Accept": "application/json, text/javascript, */*; q=0.01",
                "Accept-Language": "en-US,en;q=0.9",
            },
        )

    async def __aenter__(self) -> ModxSessionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client.

        A later request opens a fresh one, so a closed client can still log
        in again.
        """
        await self._http.aclose()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    @property
    def is_authenticated(self) -> bool:
        return self._state.authenticated

    @property
    def cached_processors(self) -> ProcessorList | None:
        """Processor catalog from the last discovery, if any."""
        return self._processors

    def get_session_info(self) -> SessionInfo:
        """Return a read-only snapshot of the session."""
        state = self._state
        if not state.authenticated:
            return SessionInfo(is_authenticated=False, base_url=state.base_url)
        return SessionInfo(
            is_authenticated=True,
            base_url=state.base_url,
            connector_url=state.connector_url,
            user=copy.deepcopy(state.user),
            login_time=state.login_time,
            last_activity=state.last_activity,
        )

    async def authenticate(
        self, username: str, password: str, base_url: str | None = None
    ) -> LoginResult:
        """Log into the manager and keep the resulting session.

        Never raises: rejected credentials, transport failures and unreadable
        bodies all produce a failed :class:`LoginResult`.
        """
        if base_url:
            self._state.base_url = base_url.rstrip("/")

        form = {
            "action": "security/login",
            "username": username,
            "password": password,
            "rememberme": "0",
            "format": "json",
        }
        try:
            response = await self._post(self._state.connector_url, form)
            response.raise_for_status()
            envelope = self._parse_envelope(response, "Invalid JSON response from MODX")
        except (httpx.HTTPError, httpx.InvalidURL, MalformedResponseError) as exc:
            self._state.reset()
            logger.warning(f"Login to {self._state.base_url} failed: {exc}")
            return LoginResult(success=False, message=f"Authentication error: {exc}")

        if not envelope.get("success"):
            self._state.reset()
            message = envelope.get("message") or "Authentication failed"
            logger.warning(f"Login to {self._state.base_url} rejected: {message}")
            return LoginResult(success=False, message=str(message))

        login_object = envelope.get("object")
        user = login_object if login_object is not None else envelope.get("data")
        # The manager token is only issued on the login object.
        token = (
            login_object.get("token") if isinstance(login_object, dict) else None
        )
        now = _now()
        state = self._state
        state.authenticated = True
        state.auth_token = str(token or "")
        state.user = user
        state.login_time = now
        state.last_activity = now
        logger.info(f"Authenticated with MODX at {state.base_url}")
        return LoginResult(
            success=True,
            message="Successfully authenticated with MODX",
            user=user,
            session_info=self.get_session_info(),
        )

    async def list_processors(self, refresh: bool = False) -> ProcessorList:
        """Return the processor catalog, discovering it when needed.

        Args:
            refresh: Ignore the cached snapshot and query the remote side.

        Raises:
            UnauthenticatedError: If no session is active.
            SessionExpiredError: If the remote side rejected the session.
            RemoteHttpError: For any other HTTP error status.
            MalformedResponseError: If the body is not JSON.
            DiscoveryError: If the component reported a failure.

        """
        self._require_authenticated()
        if self._processors is not None and not refresh:
            logger.debug("Serving processor list from cache")
            return self._processors

        self._touch()
        form = {
            "action": "data/index",
            "namespace": self._settings.discovery_namespace,
            "format": "json",
            AUTH_FIELD: self._state.auth_token,
        }
        url = f"{self._state.base_url}{self._settings.processors_connector_path}"
        response = await self._send_authenticated(url, form)
        envelope = self._parse_envelope(
            response, "Invalid JSON response from MODX component"
        )
        listing = envelope.get("object")
        if not envelope.get("success") or not isinstance(listing, dict):
            raise DiscoveryError(
                str(
                    envelope.get("message")
                    or "Failed to get processors from MODX component"
                )
            )
        try:
            processors = ProcessorList.model_validate(listing)
        except ValidationError as exc:
            raise MalformedResponseError(
                "Unexpected processor list from MODX component", str(exc)
            ) from exc

        self._processors = processors
        logger.info(f"Loaded {len(processors.processors)} processors from MODX")
        return processors

    async def call_processor(
        self, namespace: str, action: str, data: dict[str, Any] | None = None
    ) -> ProcessorResult:
        """Invoke a processor through the standard connector.

        Caller data is merged after the fixed fields, so a caller key that
        matches one of them replaces it.

        Raises:
            UnauthenticatedError: If no session is active.
            SessionExpiredError: If the remote side rejected the session.
            RemoteHttpError: For any other HTTP error status.
            RemoteRequestError: If the request could not be sent.

        """
        self._require_authenticated()
        self._touch()
        form = {
            "action": action,
            "format": "json",
            AUTH_FIELD: self._state.auth_token,
        }
        for key, value in (data or {}).items():
            form[str(key)] = encode_form_value(value)

        logger.debug(f"Calling processor {namespace}/{action}")
        response = await self._send_authenticated(self._state.connector_url, form)
        try:
            envelope = response.json()
        except ValueError:
            return ProcessorResult.from_text(response.text)
        if not isinstance(envelope, dict):
            return ProcessorResult(success=True, data=envelope)
        return ProcessorResult.from_envelope(envelope)

    async def logout(self) -> LogoutResult:
        """End the session; never fails from the caller's point of view."""
        remote_ok = False
        if self._state.authenticated:
            try:
                await self.call_processor("core", "security/logout")
                remote_ok = True
            except Exception as exc:
                logger.warning(f"Remote logout failed, clearing session locally: {exc}")

        self._state.reset()
        self._http.cookies.clear()
        if remote_ok:
            return LogoutResult(message="Successfully logged out from MODX")
        return LogoutResult(message="Logged out (session cleared locally)")

    def _require_authenticated(self) -> None:
        if not self._state.authenticated:
            raise UnauthenticatedError()

    def _touch(self) -> None:
        self._state.last_activity = _now()

    async def _post(self, url: str, form: dict[str, str]) -> httpx.Response:
        logger.debug(f"POST {url} action={form.get('action')}")
        if self._http.is_closed:
            self._http = self._open_http()
        return await self._http.post(
            url,
            data=form,
            headers={
                "Content-Type": FORM_CONTENT_TYPE,
                "X-Requested-With": "XMLHttpRequest",
                "Referer": self._state.referer_url,
            },
        )

    async def _send_authenticated(
        self, url: str, form: dict[str, str]
    ) -> httpx.Response:
        try:
            response = await self._post(url, form)
        except httpx.RequestError as exc:
            raise RemoteRequestError(
                f"Request to MODX failed: {exc}", {"url": url}
            ) from exc

        if response.status_code in (401, 403):
            logger.warning(
                f"MODX answered {response.status_code}; invalidating session"
            )
            self._state.reset()
            raise SessionExpiredError()
        if response.is_error:
            raise RemoteHttpError(
                response.status_code, response.reason_phrase or "Request failed"
            )
        return response

    @staticmethod
    def _parse_envelope(response: httpx.Response, message: str) -> dict[str, Any]:
        try:
            envelope = response.json()
        except ValueError as exc:
            raise MalformedResponseError(message, response.text[:200]) from exc
        if not isinstance(envelope, dict):
            raise MalformedResponseError(message, response.text[:200])
        return envelope
