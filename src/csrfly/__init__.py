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
"""csrfly — double-submit cookie CSRF protection."""

from csrfly.csrf import (
    Cookie,
    CookieOptions,
    CsrfConfig,
    CsrfConfigurationError,
    CsrfError,
    CsrfExchange,
    CsrfProtect,
    TokenCodec,
    TokenOptions,
    build_config,
    create_csrf_protect,
    get_token_string,
    load_csrf_config,
)

__version__ = "0.1.0"

__all__ = [
    "Cookie",
    "CookieOptions",
    "CsrfConfig",
    "CsrfConfigurationError",
    "CsrfError",
    "CsrfExchange",
    "CsrfProtect",
    "TokenCodec",
    "TokenOptions",
    "build_config",
    "create_csrf_protect",
    "get_token_string",
    "load_csrf_config",
]
