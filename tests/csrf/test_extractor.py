"""Tests for request token extraction."""

from __future__ import annotations

import json

import pytest

from csrfly.csrf.extractor import field_name_pattern, get_token_string

FORM = "application/x-www-form-urlencoded"


class _Upload:
    """Stands in for a framework file object."""

    filename = "photo.png"


class TestOverrideFunction:
    @pytest.mark.asyncio
    async def test_sync_override_wins(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"x-csrf-token": "header-token"})
        assert await get_token_string(exchange, lambda ex: "override") == "override"

    @pytest.mark.asyncio
    async def test_async_override_receives_exchange(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"x-custom": "from-custom"})

        async def value_fn(ex) -> str:  # noqa: ANN001
            return ex.get_header("x-custom")

        assert await get_token_string(exchange, value_fn) == "from-custom"


class TestHeader:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    async def test_header_on_any_method(self, make_exchange, method: str) -> None:
        exchange = make_exchange(method=method, headers={"x-csrf-token": "my-token"})
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_header_lookup_is_case_insensitive(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"X-CSRF-Token": "my-token"})
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_empty_header_still_wins_over_body(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"x-csrf-token": "", "content-type": FORM},
            body="csrf_token=body-token",
        )
        assert await get_token_string(exchange) == ""


class TestFormBodies:
    @pytest.mark.asyncio
    async def test_urlencoded(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": FORM}, body="a=1&csrf_token=my-token")
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_urlencoded_with_charset(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": f"{FORM}; charset=UTF-8"},
            body="csrf_token=my-token",
        )
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_multipart_with_file_field(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": "multipart/form-data; boundary=xyz"},
            form=[("upload", _Upload()), ("csrf_token", "my-token")],
        )
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_numeric_prefix(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": FORM}, body="2_csrf_token=my-token")
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_first_match_wins(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": FORM},
            body="1_0_csrf_token=first&csrf_token=second",
        )
        assert await get_token_string(exchange) == "first"

    @pytest.mark.asyncio
    async def test_matched_file_value_is_empty(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": "multipart/form-data; boundary=xyz"},
            form=[("csrf_token", _Upload()), ("1_csrf_token", "later")],
        )
        assert await get_token_string(exchange) == ""

    @pytest.mark.asyncio
    async def test_no_match_is_empty(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": FORM}, body="x_csrf_token=nope&a=1")
        assert await get_token_string(exchange) == ""

    @pytest.mark.asyncio
    async def test_trailing_newline_in_name_does_not_match(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": FORM},
            form=[("csrf_token\n", "smuggled"), ("csrf_token", "my-token")],
        )
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_custom_field_name(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": FORM}, body="3_authenticity=my-token")
        assert await get_token_string(exchange, field_name="authenticity") == "my-token"

    @pytest.mark.asyncio
    async def test_unparseable_form_is_empty(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": "multipart/form-data"})

        async def broken_form():
            raise ValueError("missing boundary")

        exchange.get_form = broken_form
        assert await get_token_string(exchange) == ""


class TestJsonBodies:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", ["application/json", "application/ld+json"])
    async def test_json_field(self, make_exchange, content_type: str) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": content_type},
            body=json.dumps({"csrf_token": "my-token"}),
        )
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ['{"csrf_token": 5}', '{"other": "x"}', '["my-token"]', "{not json"])
    async def test_json_without_usable_field_is_empty(self, make_exchange, body: str) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": "application/json"}, body=body)
        assert await get_token_string(exchange) == ""

    @pytest.mark.asyncio
    async def test_deeply_nested_json_is_empty(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": "application/json"},
            body="[" * 200_000 + "]" * 200_000,
        )
        assert await get_token_string(exchange) == ""


class TestTextBodies:
    @pytest.mark.asyncio
    async def test_server_action_first_string_argument(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": "text/plain;charset=UTF-8"},
            body=json.dumps(["my-token", "arg"]),
        )
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_server_action_object_argument(self, make_exchange) -> None:
        exchange = make_exchange(
            method="POST",
            headers={"content-type": "text/plain"},
            body=json.dumps([{"csrf_token": "my-token"}, 1]),
        )
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_server_action_object_without_token(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": "text/plain"}, body='[{"a": 1}]')
        assert await get_token_string(exchange) == ""

    @pytest.mark.asyncio
    async def test_server_action_scalar_argument(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": "text/plain"}, body="[42]")
        assert await get_token_string(exchange) == "42"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["[]", '{"csrf_token": "x"}', "raw-token", "[null]"])
    async def test_raw_text_fallback(self, make_exchange, body: str) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": "text/plain"}, body=body)
        assert await get_token_string(exchange) == body

    @pytest.mark.asyncio
    async def test_deeply_nested_action_args_fall_back_to_raw(self, make_exchange) -> None:
        body = "[" * 200_000 + "]" * 200_000
        exchange = make_exchange(method="POST", headers={"content-type": "text/plain"}, body=body)
        assert await get_token_string(exchange) == body

    @pytest.mark.asyncio
    async def test_missing_content_type_is_treated_as_text(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", body='["my-token"]')
        assert await get_token_string(exchange) == "my-token"

    @pytest.mark.asyncio
    async def test_other_content_type_returns_raw_text(self, make_exchange) -> None:
        exchange = make_exchange(method="POST", headers={"content-type": "application/octet-stream"}, body='["x"]')
        assert await get_token_string(exchange) == '["x"]'


class TestFieldNamePattern:
    @pytest.mark.parametrize("name", ["csrf_token", "1_csrf_token", "1_0_csrf_token", "12_345_csrf_token"])
    def test_matches(self, name: str) -> None:
        assert field_name_pattern("csrf_token").match(name)

    @pytest.mark.parametrize(
        "name",
        ["csrf_tokens", "a_csrf_token", "1csrf_token", "_csrf_token", "csrf-token", "csrf_token\n", "1_csrf_token\n"],
    )
    def test_rejects(self, name: str) -> None:
        assert field_name_pattern("csrf_token").match(name) is None

    def test_field_name_is_escaped(self) -> None:
        assert field_name_pattern("a.b").match("axb") is None
