# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StarletteCsrfExchange — CsrfExchange implementation over a Starlette Request."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Message, Receive

from csrfly.csrf.ports import Cookie


class StarletteCsrfExchange:
    """Adapts a Starlette :class:`Request` to the :class:`CsrfExchange` port.

    Cookies requested by the core are collected in :attr:`cookies` for the
    middleware to emit. The body is buffered on first read so the downstream
    app can receive it again through :meth:`downstream_receive`.
    """

    def __init__(self, request: Request) -> None:
        self._request = request
        self._body: bytes | None = None
        self.cookies: list[Cookie] = []

    def get_method(self) -> str:
        return self._request.method

    def get_pathname(self) -> str:
        return self._request.url.path

    def get_header(self, name: str) -> str | None:
        return self._request.headers.get(name)

    async def _read_body(self) -> bytes:
        if self._body is None:
            self._body = await self._request.body()
        return self._body

    async def get_text(self) -> str:
        body = await self._read_body()
        return body.decode("utf-8", errors="replace")

    async def get_form(self) -> Sequence[tuple[str, Any]]:
        # Buffer first: Request.form() then parses from the cached body.
        await self._read_body()
        try:
            async with self._request.form() as form:
                return form.multi_items()
        except (MultiPartException, HTTPException) as exc:
            # Starlette raises HTTPException(400) for bad multipart bodies inside an app.
            raise ValueError(str(exc)) from exc

    async def get_json(self) -> Any:
        body = await self._read_body()
        try:
            return json.loads(body)
        except RecursionError as exc:
            raise ValueError("json body nested too deeply") from exc

    def get_cookie(self, name: str) -> str | None:
        return self._request.cookies.get(name)

    def set_cookie(self, cookie: Cookie) -> None:
        self.cookies.append(cookie)

    def downstream_receive(self, receive: Receive) -> Receive:
        """Return a receive callable that replays the buffered body, if any."""
        if self._body is None:
            return receive

        body = self._body
        replayed = False

        async def _receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return _receive


def cookie_header(cookie: Cookie) -> str:
    """Serialise *cookie* into a ``Set-Cookie`` header value using Starlette's writer."""
    same_site = cookie.same_site
    if same_site is True:
        same_site = "strict"
    elif same_site is False:
        same_site = None

    scratch = Response()
    scratch.set_cookie(
        key=cookie.name,
        value=cookie.value,
        max_age=cookie.max_age,
        path=cookie.path,
        domain=cookie.domain or None,
        secure=cookie.secure,
        httponly=cookie.http_only,
        samesite=same_site,  # type: ignore[arg-type]
    )
    header = scratch.headers.getlist("set-cookie")[-1]
    if cookie.partitioned:
        header += "; Partitioned"
    return header
