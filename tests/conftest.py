"""Shared fixtures: an in-memory CsrfExchange for driving the core without a framework."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any
from urllib.parse import parse_qsl

import pytest

from csrfly.csrf.ports import Cookie


class FakeExchange:
    """CsrfExchange backed by plain values.

    ``form`` and ``json_body`` default to parsing ``body`` so tests can
    pass whatever representation is most readable.
    """

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        headers: dict[str, str] | None = None,
        body: str = "",
        form: Sequence[tuple[str, Any]] | None = None,
        cookies: dict[str, str] | None = None,
    ) -> None:
        self.method = method
        self.path = path
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body
        self.form = form
        self.cookies = dict(cookies or {})
        self.set_cookies: list[Cookie] = []
        self.cookie_reads: list[str] = []

    def get_method(self) -> str:
        return self.method

    def get_pathname(self) -> str:
        return self.path

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    async def get_text(self) -> str:
        return self.body

    async def get_form(self) -> Sequence[tuple[str, Any]]:
        if self.form is not None:
            return list(self.form)
        return parse_qsl(self.body, keep_blank_values=True)

    async def get_json(self) -> Any:
        return json.loads(self.body)

    def get_cookie(self, name: str) -> str | None:
        self.cookie_reads.append(name)
        return self.cookies.get(name)

    def set_cookie(self, cookie: Cookie) -> None:
        self.set_cookies.append(cookie)


@pytest.fixture
def make_exchange() -> Callable[..., FakeExchange]:
    return FakeExchange
