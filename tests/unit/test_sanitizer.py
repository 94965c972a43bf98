"""Unit tests for s256_common.sanitizer."""

import math

import pytest

from src.s256_common.sanitizer import (
    ALLOWED_RPC_METHODS,
    TICKER_NUMERIC_FIELDS,
    TICKER_STRING_FIELDS,
    sanitize_ticker,
    to_finite_float,
    validate_rpc_params,
)

BLOCK_HASH = "00000000000000000007a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f6"
ADDRESS = "S" + "a1B2c3D4e5" * 3


class TestSanitizeTicker:
    @pytest.mark.parametrize("raw", [None, "S256_USDT", 42, 1.5, ["a"], True])
    def test_non_mapping_returns_none(self, raw: object) -> None:
        assert sanitize_ticker(raw) is None

    def test_empty_mapping_gives_no_fields(self) -> None:
        assert sanitize_ticker({}) == {}

    def test_klingex_record(self) -> None:
        raw = {
            "ticker_id": "S256_USDT",
            "base_currency": "S256",
            "target_currency": "USDT",
            "last_price": "0.004521",
            "high": "0.0051",
            "low": "0.0040",
            "base_volume": "1523000.5",
            "target_volume": "6885.3",
            "bid": "0.0045",
            "ask": "0.0046",
            "pool_id": "secret-internal",
        }
        data = sanitize_ticker(raw)
        assert data is not None
        assert data["ticker_id"] == "S256_USDT"
        assert data["last_price"] == pytest.approx(0.004521)
        assert data["base_volume"] == pytest.approx(1523000.5)
        assert "pool_id" not in data

    def test_unknown_fields_dropped(self) -> None:
        data = sanitize_ticker({"last_price": 1, "<script>": "x", "__proto__": {}})
        assert set(data) == {"last_price"}

    def test_markup_characters_removed(self) -> None:
        data = sanitize_ticker({"ticker_id": "<img src=x onerror='alert(1)'>&\"S256"})
        assert data["ticker_id"] == "img src=x onerror=alert(1)S256"
        for char in "<>&\"'":
            assert char not in data["ticker_id"]

    def test_non_string_in_string_field_becomes_empty(self) -> None:
        data = sanitize_ticker({"ticker_id": {"nested": "<b>"}})
        assert data["ticker_id"] == ""

    @pytest.mark.parametrize(
        "value",
        [
            "abc",
            "",
            None,
            "NaN",
            "Infinity",
            float("nan"),
            float("inf"),
            "1e999",
            10**400,
            -(10**400),
            [1],
            {"a": 1},
        ],
    )
    def test_invalid_numbers_become_zero(self, value: object) -> None:
        data = sanitize_ticker({"last_price": value})
        assert data["last_price"] == 0.0

    def test_output_invariants(self) -> None:
        raw = {name: "<'&\">" for name in TICKER_STRING_FIELDS}
        raw.update({name: "not a number" for name in TICKER_NUMERIC_FIELDS})
        raw["extra"] = "dropped"
        data = sanitize_ticker(raw)

        assert set(data) <= set(TICKER_STRING_FIELDS) | set(TICKER_NUMERIC_FIELDS)
        for name in TICKER_NUMERIC_FIELDS:
            assert isinstance(data[name], float)
            assert math.isfinite(data[name])
        for name in TICKER_STRING_FIELDS:
            assert data[name] == ""


class TestToFiniteFloat:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, 3.0),
            (2.5, 2.5),
            ("0.25", 0.25),
            ("  12.5abc", 12.5),
            ("-1.5e3", -1500.0),
            (".5", 0.5),
            (True, 0.0),
            (False, 0.0),
        ],
    )
    def test_parses_like_parse_float(self, value: object, expected: float) -> None:
        assert to_finite_float(value) == expected

    def test_huge_int_is_zero(self) -> None:
        assert to_finite_float(10**400) == 0.0
        assert to_finite_float(10**300) == 1e300


class TestValidateRpcParams:
    @pytest.mark.parametrize("params", [None, "abc", {"0": BLOCK_HASH}, 5])
    def test_non_list_rejected(self, params: object) -> None:
        assert validate_rpc_params("getblockcount", params) is False

    def test_unconstrained_method_accepts_any_list(self) -> None:
        assert validate_rpc_params("getblockcount", []) is True
        assert validate_rpc_params("scantxoutset", ["start", [{"desc": "addr(x)"}]]) is True

    @pytest.mark.parametrize("method", ["getblock", "getrawtransaction"])
    def test_hash_methods(self, method: str) -> None:
        assert validate_rpc_params(method, [BLOCK_HASH]) is True
        assert validate_rpc_params(method, [BLOCK_HASH.upper(), 2]) is True
        assert validate_rpc_params(method, ["not-64-hex"]) is False
        assert validate_rpc_params(method, [BLOCK_HASH[:-1]]) is False
        assert validate_rpc_params(method, [BLOCK_HASH + "0"]) is False
        assert validate_rpc_params(method, [BLOCK_HASH + "\n"]) is False
        assert validate_rpc_params(method, []) is False
        assert validate_rpc_params(method, [12345]) is False

    @pytest.mark.parametrize("method", ["validateaddress", "getaddressinfo"])
    def test_address_methods(self, method: str) -> None:
        assert validate_rpc_params(method, [ADDRESS]) is True
        assert validate_rpc_params(method, ["8" + "x" * 25]) is True
        assert validate_rpc_params(method, ["s2" + "Q" * 90]) is True
        assert validate_rpc_params(method, ["1" + "x" * 30]) is False
        assert validate_rpc_params(method, ["S" + "x" * 24]) is False
        assert validate_rpc_params(method, ["S" + "x" * 91]) is False
        assert validate_rpc_params(method, ["S" + "x-" * 20]) is False
        assert validate_rpc_params(method, []) is False

    def test_sendrawtransaction(self) -> None:
        assert validate_rpc_params("sendrawtransaction", ["0200000001abcdef"]) is True
        assert validate_rpc_params("sendrawtransaction", [""]) is False
        assert validate_rpc_params("sendrawtransaction", ["02000000zz"]) is False
        assert validate_rpc_params("sendrawtransaction", []) is False


def test_allowed_methods() -> None:
    assert len(ALLOWED_RPC_METHODS) == 13
    assert "sendrawtransaction" in ALLOWED_RPC_METHODS
    assert "dumpprivkey" not in ALLOWED_RPC_METHODS
    assert "stop" not in ALLOWED_RPC_METHODS
