"""Validation of untrusted data crossing the gateway.

Two pure functions:
  - sanitize_ticker: allow-list + coerce a third-party ticker record
  - validate_rpc_params: per-method shape check of JSON-RPC params

Both are allow-lists: anything not named here is dropped or rejected.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

TICKER_STRING_FIELDS: tuple[str, ...] = ("ticker_id", "base_currency", "target_currency")
TICKER_NUMERIC_FIELDS: tuple[str, ...] = (
    "last_price",
    "high",
    "low",
    "base_volume",
    "target_volume",
    "quote_volume",
    "bid",
    "ask",
)

# Removed literally (not entity-escaped) from every string field
_MARKUP_CHARS = re.compile(r"[<>&\"']")

# Leading numeric prefix, the way a browser's parseFloat reads "12.5abc" as 12.5
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")

ALLOWED_RPC_METHODS: frozenset[str] = frozenset(
    {
        "getblockchaininfo",
        "getblockcount",
        "getbestblockhash",
        "getblock",
        "getrawtransaction",
        "sendrawtransaction",
        "estimatesmartfee",
        "scantxoutset",
        "createrawtransaction",
        "signrawtransactionwithkey",
        "decoderawtransaction",
        "validateaddress",
        "getaddressinfo",
    }
)

_HASH_RE = re.compile(r"[0-9a-fA-F]{64}")
_ADDRESS_RE = re.compile(r"(S|8|s2)[A-Za-z0-9]{25,90}")
_HEX_RE = re.compile(r"[0-9a-fA-F]+")

# method -> pattern the first param must fully match
_FIRST_PARAM_PATTERNS: dict[str, re.Pattern[str]] = {
    "getblock": _HASH_RE,
    "getrawtransaction": _HASH_RE,
    "validateaddress": _ADDRESS_RE,
    "getaddressinfo": _ADDRESS_RE,
    "sendrawtransaction": _HEX_RE,
}


def to_finite_float(value: Any) -> float:
    """Parse value as a float; 0.0 on failure or a non-finite result."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # ints past the float range, as json.loads gives for 400-digit literals
            return 0.0
    elif isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if match is None:
            return 0.0
        number = float(match.group(1))
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def strip_markup(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _MARKUP_CHARS.sub("", value)


def sanitize_ticker(raw: Any) -> dict[str, str | float] | None:
    """Keep only known ticker fields, coerced; None if raw is not a mapping."""
    if not isinstance(raw, Mapping):
        return None

    fields: dict[str, str | float] = {}
    for name in TICKER_STRING_FIELDS:
        if name in raw:
            fields[name] = strip_markup(raw[name])
    for name in TICKER_NUMERIC_FIELDS:
        if name in raw:
            fields[name] = to_finite_float(raw[name])
    return fields


def validate_rpc_params(method: str, params: Any) -> bool:
    """Check params shape for an allow-listed method.

    The caller must have checked ALLOWED_RPC_METHODS first; this only
    inspects params.
    """
    if not isinstance(params, list):
        return False

    pattern = _FIRST_PARAM_PATTERNS.get(method)
    if pattern is None:
        return True
    if not params or not isinstance(params[0], str):
        return False
    return pattern.fullmatch(params[0]) is not None
