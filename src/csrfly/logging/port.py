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
"""Pluggable logging backend for csrfly.

A host that already owns its logging setup hands csrfly an object with
this shape instead of letting :func:`configure_logging` reconfigure
structlog globally. :class:`~csrfly.csrf.protect.CsrfProtect` and
:class:`~csrfly.web.adapters.starlette.CsrfMiddleware` accept one as
``logging_port`` and ask it for their loggers.

Loggers returned by :meth:`LoggingPort.get_logger` are called with an
event name plus keyword fields, e.g.
``logger.info("csrf_validation_failed", method="POST", path="/")``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from csrfly.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    def configure(self, config: Config) -> None:
        """Apply the ``csrfly.logging`` section of *config*."""
        ...

    def get_logger(self, name: str) -> Any:
        """Return a key-value logger with ``debug`` and ``info`` methods."""
        ...

    def set_level(self, name: str, level: str) -> None:
        """Change the level of one logger namespace, e.g. ``csrfly.csrf``."""
        ...
