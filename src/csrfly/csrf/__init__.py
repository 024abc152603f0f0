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
"""csrfly CSRF core — token codec, token extraction, and the protect function."""

from csrfly.csrf.codec import (
    TokenCodec,
    create_salt,
    create_secret,
    create_token,
    decode,
    digest,
    encode,
    verify_token,
)
from csrfly.csrf.config import (
    CookieOptions,
    CsrfConfig,
    TokenOptions,
    build_config,
    load_csrf_config,
)
from csrfly.csrf.extractor import get_token_string
from csrfly.csrf.ports import Cookie, CsrfExchange
from csrfly.csrf.protect import CsrfProtect, create_csrf_protect
from csrfly.kernel.exceptions import CsrfConfigurationError, CsrfError

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
    "create_salt",
    "create_secret",
    "create_token",
    "decode",
    "digest",
    "encode",
    "get_token_string",
    "load_csrf_config",
    "verify_token",
]
