"""Shared test fixtures."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any, Union
from urllib.parse import parse_qsl

import httpx
import pytest

from modx_mcp.session_client import ModxSessionClient
from modx_mcp.settings import Settings

BASE_URL = "http://example.test"

Reply = Union[
    dict[str, Any], httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]
]

SAMPLE_PROCESSORS: dict[str, Any] = {
    "processors": [
        {
            "namespace": "core",
            "path": "resource/getlist",
            "description": "Get a list of resources",
            "class": "MODX\\Revolution\\Processors\\Resource\\GetList",
            "file": "core/src/Revolution/Processors/Resource/GetList.php",
            "parameters": [
                {
                    "name": "limit",
                    "type": "integer",
                    "required": False,
                    "description": "Page size",
                    "default": 20,
                },
                {"name": "start", "type": "int", "required": False, "default": 0},
                {"name": "query", "type": "text", "required": False, "default": ""},
                {"name": "_permission_check", "type": "string", "required": True},
            ],
        },
        {
            "namespace": "core",
            "path": "resource/get",
            "description": "Get a resource",
            "parameters": [
                {
                    "name": "id",
                    "type": "integer",
                    "required": True,
                    "description": "Resource ID",
                }
            ],
        },
        {
            "namespace": "modx-mcp",
            "path": "data/index",
            "description": "List processors",
            "parameters": [],
        },
    ],
    "total": 3,
    "generated_at": "2025-01-01 12:00:00",
}


class FakeModx:
    """MODX installation stand-in served through :class:`httpx.MockTransport`.

    Replies are keyed by the ``action`` form field. A reply may be a JSON
    mapping, a prepared response, an exception to raise, or a callable.
    """

    def __init__(self) -> None:
        self.replies: dict[str, Reply] = {}
        self.requests: list[httpx.Request] = []
        self.forms: list[dict[str, str]] = []

    def reply(self, action: str, reply: Reply) -> None:
        self.replies[action] = reply

    @property
    def actions(self) -> list[str]:
        return [form.get("action", "") for form in self.forms]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = dict(parse_qsl(request.content.decode(), keep_blank_values=True))
        self.requests.append(request)
        self.forms.append(form)
        reply = self.replies.get(form.get("action", ""))
        if reply is None:
            return httpx.Response(404, json={"success": False, "message": "No route"})
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if callable(reply):
            return reply(request)
        return httpx.Response(200, json=reply)


def login_reply(request: httpx.Request) -> httpx.Response:
    """Successful login that also starts a PHP session cookie."""
    return httpx.Response(
        200,
        json={"success": True, "object": {"token": "T1", "username": "admin"}},
        headers={"Set-Cookie": "PHPSESSID=abc123; Path=/"},
    )


@pytest.fixture()
def fake_modx() -> FakeModx:
    """Provide a fake MODX site with login, discovery and a few processors."""
    modx = FakeModx()
    modx.reply("security/login", login_reply)
    modx.reply("data/index", {"success": True, "object": SAMPLE_PROCESSORS})
    modx.reply(
        "resource/getlist",
        {"success": True, "total": 1, "results": [{"id": 1, "pagetitle": "Home"}]},
    )
    modx.reply("security/logout", {"success": True})
    return modx


@pytest.fixture()
def settings() -> Settings:
    """Settings pointing at the fake site, isolated from the environment."""
    return Settings(
        _env_file=None,
        base_url=BASE_URL,
        connector_path="/connectors/",
        admin_path="/manager/",
        username="admin",
        password="adminadmin",
    )


@pytest.fixture()
def client(settings: Settings, fake_modx: FakeModx) -> ModxSessionClient:
    """Session client wired to the fake site."""
    return ModxSessionClient(settings, transport=fake_modx.transport)


@pytest.fixture()
def sample_processors() -> dict[str, Any]:
    """Provide the processor catalog served by the fake site."""
    return copy.deepcopy(SAMPLE_PROCESSORS)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio, which fastmcp's client requires."""
    return "asyncio"
