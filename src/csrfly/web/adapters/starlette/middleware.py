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
"""CsrfMiddleware — double-submit cookie CSRF protection, pure ASGI.

* The secret cookie (``_csrfSecret`` by default) is set when missing.
* Methods outside ``ignore_methods`` must carry a token derived from the
  secret (``X-CSRF-Token`` header, form field, JSON key, or server-action
  arguments); otherwise the request is answered with ``403``.
* Every protected response carries a fresh token in the configured
  response header and in ``request.state.csrf_token``.

Usage::

    app = Starlette(routes=routes)
    app.add_middleware(CsrfMiddleware, options={"cookie": {"secure": False}})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from csrfly.csrf.config import CsrfConfig
from csrfly.csrf.protect import CsrfProtect, create_csrf_protect
from csrfly.kernel.exceptions import CsrfError
from csrfly.logging.port import LoggingPort
from csrfly.web.adapters.starlette.exchange import StarletteCsrfExchange, cookie_header

FORBIDDEN_BODY: str = "invalid csrf token"


class CsrfMiddleware:
    """Runs a :class:`CsrfProtect` in front of the wrapped ASGI app.

    Uses raw ASGI protocol instead of ``BaseHTTPMiddleware`` so that the
    buffered request body can be replayed to the downstream app.

    Args:
        app: The downstream ASGI application.
        protect: A ready protect function. Built from *options* and
            *defaults* when omitted.
        options: Application options, see :func:`build_config`.
        defaults: Host-level defaults layered under *options*.
        logging_port: Logging backend for the protect function built here.
    """

    def __init__(
        self,
        app: ASGIApp,
        protect: CsrfProtect | None = None,
        options: CsrfConfig | Mapping[str, Any] | None = None,
        defaults: Mapping[str, Any] | None = None,
        logging_port: LoggingPort | None = None,
    ) -> None:
        self.app = app
        self._protect = protect or create_csrf_protect(options, defaults=defaults, logging_port=logging_port)

    @property
    def config(self) -> CsrfConfig:
        return self._protect.config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        exchange = StarletteCsrfExchange(request)

        try:
            token = await self._protect(exchange)
        except CsrfError:
            response = PlainTextResponse(FORBIDDEN_BODY, status_code=403)
            for cookie in exchange.cookies:
                response.raw_headers.append((b"set-cookie", cookie_header(cookie).encode("latin-1")))
            await response(scope, receive, send)
            return

        if token is not None:
            request.state.csrf_token = token

        set_cookies = [cookie_header(cookie) for cookie in exchange.cookies]
        response_header = self.config.token.response_header

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for value in set_cookies:
                    headers.append("set-cookie", value)
                if token is not None:
                    headers[response_header] = token
            await send(message)

        await self.app(scope, exchange.downstream_receive(receive), _send)


def get_csrf_token(request: Request) -> str | None:
    """Return the token issued for *request* by :class:`CsrfMiddleware`, if any."""
    return getattr(request.state, "csrf_token", None)
