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
"""CSRF protect function — double-submit cookie orchestration.

Per request:

* **Excluded path** — nothing happens, ``None`` is returned.
* **No secret cookie** — a new secret is minted and handed to
  ``set_cookie``. A cookie that is present but corrupt is *not* replaced; it
  decodes to an empty secret and fails verification.
* **Unsafe method** — the client's token must have been derived from the
  secret, otherwise :class:`CsrfError` is raised and no token is issued.
* **Otherwise** — a fresh token for the secret is returned for the host to
  publish (e.g. in the ``X-CSRF-Token`` response header).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from csrfly.csrf.codec import TokenCodec, decode, default_codec, encode
from csrfly.csrf.config import CsrfConfig, build_config
from csrfly.csrf.extractor import get_token_string
from csrfly.csrf.ports import Cookie, CsrfExchange
from csrfly.kernel.exceptions import CsrfError
from csrfly.logging.port import LoggingPort

logger = structlog.get_logger("csrfly.csrf.protect")


class CsrfProtect:
    """Stateless CSRF check bound to one :class:`CsrfConfig`.

    Safe to share across concurrent requests: nothing is stored between
    calls. Events go to *logging_port* when one is given, otherwise to the
    module's structlog logger.
    """

    def __init__(
        self,
        config: CsrfConfig,
        codec: TokenCodec | None = None,
        logging_port: LoggingPort | None = None,
    ) -> None:
        self.config = config
        self._codec = codec or default_codec
        self._logger = logging_port.get_logger(__name__) if logging_port is not None else logger

    async def __call__(self, exchange: CsrfExchange) -> str | None:
        """Run the check for *exchange*.

        Returns:
            The new base64 token, or ``None`` when the path is excluded.

        Raises:
            CsrfError: If the method requires a token and the token is
                missing or does not match the secret.
        """
        config = self.config
        pathname = exchange.get_pathname()

        if config.is_excluded(pathname):
            self._logger.debug("csrf_path_excluded", path=pathname)
            return None

        secret_str = exchange.get_cookie(config.cookie.name)
        if secret_str is None:
            secret = self._codec.create_secret(config.secret_byte_length)
            exchange.set_cookie(Cookie.from_options(config.cookie, encode(secret)))
            self._logger.debug("csrf_secret_created", cookie=config.cookie.name)
        else:
            secret = decode(secret_str)

        method = exchange.get_method()
        if not config.is_ignored(method):
            token_str = await get_token_string(
                exchange,
                value_fn=config.token.value,
                field_name=config.token.field_name,
            )
            if not self._codec.verify_token(decode(token_str), secret):
                self._logger.info("csrf_validation_failed", method=method, path=pathname)
                raise CsrfError(context={"method": method, "path": pathname})

        return encode(self._codec.create_token(secret, config.salt_byte_length))


def create_csrf_protect(
    options: CsrfConfig | Mapping[str, Any] | None = None,
    *,
    defaults: Mapping[str, Any] | None = None,
    codec: TokenCodec | None = None,
    logging_port: LoggingPort | None = None,
) -> CsrfProtect:
    """Create a protect function from options layered over host *defaults*.

    Raises:
        CsrfConfigurationError: If the options are invalid.
    """
    return CsrfProtect(build_config(options, defaults=defaults), codec=codec, logging_port=logging_port)
