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
"""CsrfExchange port — what the CSRF core needs from a host framework.

Vendor request/response types stay confined to adapters; the core only
sees this capability set.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from csrfly.csrf.config import CookieOptions


@dataclass(frozen=True)
class Cookie(CookieOptions):
    """A cookie to be set on the response: the configured attributes plus a value."""

    value: str = ""

    @classmethod
    def from_options(cls, options: CookieOptions, value: str) -> Cookie:
        return cls(
            name=options.name,
            domain=options.domain,
            path=options.path,
            http_only=options.http_only,
            secure=options.secure,
            same_site=options.same_site,
            max_age=options.max_age,
            partitioned=options.partitioned,
            value=value,
        )


@runtime_checkable
class CsrfExchange(Protocol):
    """One request/response cycle as seen by the CSRF core.

    ``get_form`` returns ``(name, value)`` pairs in body order; file uploads
    appear with non-``str`` values. ``get_form`` and ``get_json`` raise
    ``ValueError`` when the body cannot be parsed.
    """

    def get_method(self) -> str: ...

    def get_pathname(self) -> str: ...

    def get_header(self, name: str) -> str | None: ...

    async def get_text(self) -> str: ...

    async def get_form(self) -> Sequence[tuple[str, Any]]: ...

    async def get_json(self) -> Any: ...

    def get_cookie(self, name: str) -> str | None: ...

    def set_cookie(self, cookie: Cookie) -> None: ...
