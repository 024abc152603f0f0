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
"""CSRF protection settings.

One immutable :class:`CsrfConfig` serves every host. Host-specific
defaults are passed to :func:`build_config` as an extra layer instead of
being baked into subclasses::

    config = build_config(
        {"cookie": {"secure": False}},
        defaults={"exclude_path_prefixes": ["/static/"]},
    )

The same structure binds from YAML/TOML/env under ``csrfly.csrf``
(see :func:`load_csrf_config`).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from csrfly.core.config import Config, config_properties
from csrfly.kernel.exceptions import CsrfConfigurationError

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_COOKIE_NAME: str = "_csrfSecret"
DEFAULT_FIELD_NAME: str = "csrf_token"
DEFAULT_RESPONSE_HEADER: str = "X-CSRF-Token"
DEFAULT_IGNORE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})

MIN_BYTE_LENGTH: int = 1
MAX_BYTE_LENGTH: int = 255

SameSite = Literal["strict", "lax", "none"] | bool

TokenValueFunction = Callable[[Any], Awaitable[str] | str]
"""Override hook: receives the request exchange, returns the token string."""

_SAME_SITE_VALUES = ("strict", "lax", "none")


@dataclass(frozen=True)
class CookieOptions:
    """Attributes of the cookie that carries the secret.

    ``max_age=None`` makes it a session cookie. ``same_site=True`` means
    ``strict`` and ``False`` omits the attribute.
    """

    name: str = DEFAULT_COOKIE_NAME
    domain: str = ""
    path: str = "/"
    http_only: bool = True
    secure: bool = True
    same_site: SameSite = "strict"
    max_age: int | None = None
    partitioned: bool | None = None

    def __post_init__(self) -> None:
        if isinstance(self.same_site, str):
            same_site = self.same_site.lower()
            if same_site not in _SAME_SITE_VALUES:
                raise CsrfConfigurationError(
                    f"cookie same_site must be one of {_SAME_SITE_VALUES} or a bool, got {self.same_site!r}",
                    context={"same_site": self.same_site},
                )
            object.__setattr__(self, "same_site", same_site)


@dataclass(frozen=True)
class TokenOptions:
    """Where the token is looked for in requests and published in responses."""

    field_name: str = DEFAULT_FIELD_NAME
    response_header: str = DEFAULT_RESPONSE_HEADER
    value: TokenValueFunction | None = None


@config_properties(prefix="csrfly.csrf")
@dataclass(frozen=True)
class CsrfConfig:
    """Immutable CSRF settings.

    Raises:
        CsrfConfigurationError: If a byte length falls outside [1, 255].
    """

    cookie: CookieOptions = field(default_factory=CookieOptions)
    token: TokenOptions = field(default_factory=TokenOptions)
    salt_byte_length: int = 8
    secret_byte_length: int = 18
    ignore_methods: frozenset[str] = DEFAULT_IGNORE_METHODS
    exclude_path_prefixes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_byte_length("salt_byte_length", self.salt_byte_length)
        _check_byte_length("secret_byte_length", self.secret_byte_length)

        # Normalise collections coming from YAML lists or env strings.
        object.__setattr__(self, "ignore_methods", frozenset(m.upper() for m in _as_items(self.ignore_methods)))
        object.__setattr__(self, "exclude_path_prefixes", tuple(_as_items(self.exclude_path_prefixes)))

    def is_excluded(self, pathname: str) -> bool:
        return any(pathname.startswith(prefix) for prefix in self.exclude_path_prefixes)

    def is_ignored(self, method: str) -> bool:
        return method.upper() in self.ignore_methods


def _check_byte_length(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not MIN_BYTE_LENGTH <= value <= MAX_BYTE_LENGTH:
        raise CsrfConfigurationError(
            f"{name} must be greater than 0 and less than 256, got {value!r}",
            context={name: value},
        )


def _as_items(value: Iterable[str] | str) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
def build_config(
    options: CsrfConfig | Mapping[str, Any] | None = None,
    *,
    defaults: Mapping[str, Any] | None = None,
) -> CsrfConfig:
    """Build a :class:`CsrfConfig` from layered option mappings.

    Layers, lowest first: built-in dataclass defaults, *defaults* (host
    specific), *options* (application supplied). Nested ``cookie`` and
    ``token`` mappings merge key by key rather than replacing each other.
    A ready :class:`CsrfConfig` passed as *options* is returned unchanged.
    """
    if isinstance(options, CsrfConfig):
        return options

    merged = _merge_options(defaults or {}, options or {})
    unknown = set(merged) - {f.name for f in dataclasses.fields(CsrfConfig)}
    if unknown:
        raise CsrfConfigurationError(f"unknown csrf options: {sorted(unknown)}", context={"unknown": sorted(unknown)})

    kwargs = dict(merged)
    if "cookie" in kwargs:
        kwargs["cookie"] = _build_nested(CookieOptions, kwargs["cookie"])
    if "token" in kwargs:
        kwargs["token"] = _build_nested(TokenOptions, kwargs["token"])
    return CsrfConfig(**kwargs)


def load_csrf_config(config: Config, *, defaults: Mapping[str, Any] | None = None) -> CsrfConfig:
    """Bind ``csrfly.csrf`` from *config*, layered over host *defaults*.

    Environment overrides (``CSRFLY_CSRF_*``) still win over both.
    """
    if defaults:
        layered = Config._deep_merge({"csrfly": {"csrf": dict(defaults)}}, config.to_dict())
        config = Config(layered)
    return config.bind(CsrfConfig)


def _merge_options(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if key in ("cookie", "token") and isinstance(merged.get(key), Mapping) and isinstance(value, Mapping):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _build_nested(cls: type[Any], value: Any) -> Any:
    if isinstance(value, cls):
        return value
    if not isinstance(value, Mapping):
        raise CsrfConfigurationError(f"{cls.__name__} options must be a mapping, got {type(value).__name__}")
    unknown = set(value) - {f.name for f in dataclasses.fields(cls)}
    if unknown:
        raise CsrfConfigurationError(
            f"unknown {cls.__name__} options: {sorted(unknown)}",
            context={"unknown": sorted(unknown)},
        )
    return cls(**value)
