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
"""Token codec — secrets, salted tokens, and their base64 transport form.

Token layout::

    +--------+----------+-----------------+----------------------------+
    | algo=0 | salt_len | salt (salt_len) | SHA-1(secret || salt) (20) |
    +--------+----------+-----------------+----------------------------+

Secrets come from a CSPRNG. Salts only need to make tokens for the same
secret distinct, so they come from the ordinary ``random`` generator.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import random
import secrets
from collections.abc import Callable
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
HASH_ALGORITHM_SHA1: int = 0
"""Algorithm id written into byte 0 of every token."""

DIGEST_BYTE_LENGTH: int = 20
"""Length of a SHA-1 digest."""

TOKEN_HEADER_LENGTH: int = 2
"""Algorithm id byte plus salt length byte."""

MIN_TOKEN_LENGTH: int = TOKEN_HEADER_LENGTH + DIGEST_BYTE_LENGTH
"""Shortest possible valid token (empty salt)."""

MAX_SALT_BYTE_LENGTH: int = 255

ByteSource = Callable[[int], bytes]
HashFactory = Callable[[bytes], Any]


class TokenCodec:
    """Creates and verifies CSRF secrets and tokens.

    The random sources and the digest are constructor dependencies so
    that tests can substitute deterministic fakes.

    Args:
        secret_source: Returns *n* cryptographically secure random bytes.
        salt_source: Returns *n* random bytes; need not be cryptographic.
        hash_factory: ``hashlib``-style constructor, called with the data
            to hash and returning an object with ``digest()``.
    """

    def __init__(
        self,
        secret_source: ByteSource = secrets.token_bytes,
        salt_source: ByteSource = random.randbytes,
        hash_factory: HashFactory = hashlib.sha1,
    ) -> None:
        self._secret_source = secret_source
        self._salt_source = salt_source
        self._hash_factory = hash_factory

    def create_secret(self, byte_length: int) -> bytes:
        return bytes(self._secret_source(byte_length))

    def create_salt(self, byte_length: int) -> bytes:
        return bytes(self._salt_source(byte_length))

    def digest(self, secret: bytes, salt: bytes) -> bytes:
        """Hash ``secret`` immediately followed by ``salt``."""
        return self._hash_factory(bytes(secret) + bytes(salt)).digest()

    def create_token(self, secret: bytes, salt_byte_length: int) -> bytes:
        """Mint a fresh token for *secret*.

        Raises:
            ValueError: If *salt_byte_length* does not fit in one byte.
        """
        if not 0 <= salt_byte_length <= MAX_SALT_BYTE_LENGTH:
            raise ValueError(f"salt_byte_length must be between 0 and {MAX_SALT_BYTE_LENGTH}, got {salt_byte_length}")

        salt = self.create_salt(salt_byte_length)
        return bytes((HASH_ALGORITHM_SHA1, salt_byte_length)) + salt + self.digest(secret, salt)

    def verify_token(self, token: bytes, secret: bytes) -> bool:
        """Return ``True`` if *token* was derived from *secret*.

        Byte 0 (algorithm id) is not inspected; every token is checked
        with the codec's digest.
        """
        if len(token) < MIN_TOKEN_LENGTH:
            return False

        salt_end = TOKEN_HEADER_LENGTH + token[1]
        salt = token[TOKEN_HEADER_LENGTH:salt_end]
        expected = self.digest(secret, salt)

        # compare_digest checks length before contents
        return hmac.compare_digest(token[salt_end:], expected)


# ---------------------------------------------------------------------------
# Transport encoding
# ---------------------------------------------------------------------------
def encode(data: bytes) -> str:
    """Standard, padded base64."""
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode standard base64, returning ``b""`` for anything malformed.

    ASCII whitespace is ignored and missing ``=`` padding is tolerated.
    """
    if not isinstance(text, str):
        return b""

    compact = "".join(text.split())
    remainder = len(compact) % 4
    if remainder == 1:
        return b""
    if remainder:
        compact += "=" * (4 - remainder)

    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return b""


# ---------------------------------------------------------------------------
# Module-level helpers backed by the default codec
# ---------------------------------------------------------------------------
default_codec = TokenCodec()


def create_secret(byte_length: int) -> bytes:
    return default_codec.create_secret(byte_length)


def create_salt(byte_length: int) -> bytes:
    return default_codec.create_salt(byte_length)


def digest(secret: bytes, salt: bytes) -> bytes:
    return default_codec.digest(secret, salt)


def create_token(secret: bytes, salt_byte_length: int) -> bytes:
    return default_codec.create_token(secret, salt_byte_length)


def verify_token(token: bytes, secret: bytes) -> bool:
    return default_codec.verify_token(token, secret)
