"""Tests for HTTP Basic credential encoding."""

from __future__ import annotations

import base64

import pytest

from moncash.auth.credentials import basic_auth_header, encode_credentials


class TestEncodeCredentials:
    @pytest.mark.parametrize(
        "client_id, client_secret",
        [
            ("client-id", "client-secret"),
            ("", ""),
            ("id:with:colons", "secret"),
            ("café", "sécrèt-üñîçødé"),
            ("id", "\U0001f510 emoji"),
        ],
    )
    def test_decodes_back_to_utf8_pair(self, client_id: str, client_secret: str) -> None:
        encoded = encode_credentials(client_id, client_secret)
        assert base64.b64decode(encoded, validate=True) == f"{client_id}:{client_secret}".encode("utf-8")

    def test_known_value(self) -> None:
        assert encode_credentials("Aladdin", "open sesame") == "QWxhZGRpbjpvcGVuIHNlc2FtZQ=="

    def test_padding_is_kept(self) -> None:
        # 4 raw bytes -> 8 chars with two padding characters
        assert encode_credentials("a", "bc") == "YTpiYw=="

    def test_non_ascii_uses_utf8_bytes(self) -> None:
        # "é" is two bytes in UTF-8, one code unit in Latin-1
        assert encode_credentials("é", "") == base64.b64encode(b"\xc3\xa9:").decode("ascii")

    def test_standard_alphabet(self) -> None:
        # c3 bb c3 bf 3a 3f -> last sextet is 63, '/' rather than urlsafe '_'
        assert encode_credentials("ûÿ", "?") == "w7vDvzo/"


class TestBasicAuthHeader:
    def test_prefix(self) -> None:
        assert basic_auth_header("Aladdin", "open sesame") == "Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=="
