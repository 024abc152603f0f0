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
"""Locate the client-supplied CSRF token in a request.

Lookup order:

1. the configured override function, if any (its result is final),
2. the ``x-csrf-token`` header,
3. the body, according to its content type:

   * ``application/x-www-form-urlencoded`` / ``multipart/form-data`` — the
     first field named ``<field_name>`` or ``<digits>_<field_name>``
     (server-action forms prefix positional indices, e.g. ``1_0_csrf_token``),
   * ``application/json`` / ``application/ld+json`` — the top-level
     ``<field_name>`` key,
   * ``text/plain`` (also assumed when no content type is sent) — a JSON
     array of server-action arguments whose first element carries the token,
     or otherwise the raw text,
   * anything else — the raw text.

Nothing here raises on malformed input: a missing or unreadable token is
``""`` and fails verification downstream.
"""

from __future__ import annotations

import inspect
import json
import re
from functools import lru_cache
from typing import Any

from csrfly.csrf.config import DEFAULT_FIELD_NAME, TokenValueFunction
from csrfly.csrf.ports import CsrfExchange

TOKEN_HEADER: str = "x-csrf-token"

FORM_CONTENT_TYPE: str = "application/x-www-form-urlencoded"
MULTIPART_CONTENT_TYPE: str = "multipart/form-data"
JSON_CONTENT_TYPES: frozenset[str] = frozenset({"application/json", "application/ld+json"})
TEXT_CONTENT_TYPE: str = "text/plain"


@lru_cache(maxsize=32)
def field_name_pattern(field_name: str) -> re.Pattern[str]:
    """Match *field_name* optionally prefixed by ``<digits>_`` segments."""
    return re.compile(rf"^(\d+_)*{re.escape(field_name)}\Z")


async def get_token_string(
    exchange: CsrfExchange,
    value_fn: TokenValueFunction | None = None,
    field_name: str = DEFAULT_FIELD_NAME,
) -> str:
    """Return the token string the client sent, or ``""`` if there is none."""
    if value_fn is not None:
        result = value_fn(exchange)
        if inspect.isawaitable(result):
            result = await result
        return result

    token = exchange.get_header(TOKEN_HEADER)
    if token is not None:
        return token

    content_type = exchange.get_header("content-type") or TEXT_CONTENT_TYPE
    media_type = content_type.split(";", 1)[0].strip().lower()

    if media_type == FORM_CONTENT_TYPE or media_type.startswith(MULTIPART_CONTENT_TYPE):
        return await _from_form(exchange, field_name)

    if media_type in JSON_CONTENT_TYPES:
        return await _from_json(exchange, field_name)

    raw = await exchange.get_text()

    if media_type.startswith(TEXT_CONTENT_TYPE):
        return _from_action_args(raw, field_name)

    return raw


async def _from_form(exchange: CsrfExchange, field_name: str) -> str:
    try:
        fields = await exchange.get_form()
    except ValueError:
        return ""

    pattern = field_name_pattern(field_name)
    for key, value in fields:
        if pattern.match(key):
            return value if isinstance(value, str) else ""
    return ""


async def _from_json(exchange: CsrfExchange, field_name: str) -> str:
    try:
        document = await exchange.get_json()
    except (ValueError, RecursionError):
        return ""

    if isinstance(document, dict):
        value = document.get(field_name)
        if isinstance(value, str):
            return value
    return ""


def _from_action_args(raw: str, field_name: str) -> str:
    """Server actions called without a form post their arguments as a JSON array."""
    try:
        args = json.loads(raw)
    except (ValueError, RecursionError):
        return raw

    if not isinstance(args, list) or not args:
        return raw

    first: Any = args[0]
    if isinstance(first, str):
        return first
    if isinstance(first, dict):
        value = first.get(field_name)
        return value if isinstance(value, str) else ""
    if isinstance(first, list):
        return ""
    if first is None:
        return raw
    return json.dumps(first)
