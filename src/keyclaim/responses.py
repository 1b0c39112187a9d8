"""Challenge response generation."""

import hashlib
import hmac
import json
import math
import re
from collections.abc import Mapping
from typing import Any

from keyclaim.errors import KeyClaimError

RESPONSE_METHODS = ("echo", "hmac", "hash", "custom")

_LONE_SURROGATE = re.compile(
    r"[\ud800-\udbff](?![\udc00-\udfff])|(?<![\ud800-\udbff])[\udc00-\udfff]"
)


def _utf8(text: str) -> bytes:
    """Encode text as UTF-8, replacing lone surrogates with U+FFFD."""
    return (
        text.encode("utf-16-le", "surrogatepass")
        .decode("utf-16-le", "replace")
        .encode("utf-8")
    )


def _sha256_hex(data: str) -> str:
    return hashlib.sha256(_utf8(data)).hexdigest()


def _json_number(value: float) -> str:
    """Format a float the way JavaScript's Number#toString does."""
    if math.isnan(value) or math.isinf(value):
        return "null"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    mantissa, _, exponent = repr(abs(value)).partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    all_digits = int_part + frac_part
    stripped = all_digits.lstrip("0")
    # abs(value) == 0.<digits> * 10 ** point
    point = len(int_part) + int(exponent or 0) - (len(all_digits) - len(stripped))
    digits = stripped.rstrip("0")

    if len(digits) <= point <= 21:
        return sign + digits + "0" * (point - len(digits))
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits

    exp = point - 1
    fraction = "." + digits[1:] if len(digits) > 1 else ""
    return f"{sign}{digits[0]}{fraction}e{'+' if exp > 0 else '-'}{abs(exp)}"


def _json_string(value: str) -> str:
    encoded = json.dumps(value, ensure_ascii=False)
    return _LONE_SURROGATE.sub(lambda m: f"\\u{ord(m.group()):04x}", encoded)


def _json_key(key: Any) -> str:
    if isinstance(key, str):
        return _json_string(key)
    if key is None or isinstance(key, (bool, int, float)):
        return _json_string(_to_json(key))
    raise KeyClaimError(
        f"Custom data is not JSON serializable: key {key!r} is not a string"
    )


def _to_json(value: Any) -> str:
    """Serialize value like JSON.stringify: compact, keys in insertion order."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return _json_string(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _json_number(value)
    if isinstance(value, Mapping):
        items = (f"{_json_key(k)}:{_to_json(v)}" for k, v in value.items())
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_to_json(item) for item in value) + "]"
    raise KeyClaimError(
        f"Custom data is not JSON serializable: {type(value).__name__}"
    )


def _serialize_custom_data(custom_data: Any) -> str:
    if isinstance(custom_data, str):
        return custom_data
    return _to_json(custom_data)


def generate_response(
    challenge: str,
    method: str = "hmac",
    secret: str = "",
    custom_data: Any = None,
) -> str:
    """
    Derive the response string for a challenge.

    Methods:
    - ``echo``: the challenge itself (testing only, insecure)
    - ``hmac``: HMAC-SHA256 of the challenge keyed with ``secret``
    - ``hash``: SHA256 of ``challenge + secret``
    - ``custom``: SHA256 of ``"<challenge>:<custom_data>"``, where non-string
      data is serialized as compact JSON, formatted as JSON.stringify would

    Text is hashed as UTF-8 with lone surrogates replaced by U+FFFD.

    Args:
        challenge: Challenge string issued by the server
        method: One of ``RESPONSE_METHODS``
        secret: Shared secret used by ``hmac`` and ``hash``
        custom_data: Required for ``custom``

    Returns:
        Lowercase hex digest (or the challenge for ``echo``)

    Raises:
        KeyClaimError: If the method is unknown or custom data is missing
            or not serializable

    Example:
        >>> generate_response("abc123", "echo")
        'abc123'
    """
    if method == "echo":
        return challenge

    if method == "hmac":
        return hmac.new(_utf8(secret), _utf8(challenge), hashlib.sha256).hexdigest()

    if method == "hash":
        return _sha256_hex(challenge + secret)

    if method == "custom":
        if not custom_data:
            raise KeyClaimError("Custom data is required for custom method")
        return _sha256_hex(f"{challenge}:{_serialize_custom_data(custom_data)}")

    raise KeyClaimError(f"Unknown response method: {method}")
