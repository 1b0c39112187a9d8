"""Tests for challenge response generation."""

import hashlib
import json
import re

import pytest

from keyclaim.errors import KeyClaimError
from keyclaim.responses import RESPONSE_METHODS, generate_response


def test_hash_known_value():
    """Test hash method against SHA256 of challenge + secret."""
    result = generate_response("abc123", "hash", secret="s")
    assert result == hashlib.sha256(b"abc123s").hexdigest()
    assert result == "1c26003c2debb0ab6eabed12f78d13935da7ba98973b2f89f675ffeff848ae68"


def test_hmac_known_value():
    """Test hmac method against a known HMAC-SHA256 value."""
    result = generate_response("abc123", "hmac", secret="s")
    assert result == "98a67abc7dc8e094098463fcecc56f07d3a485853a8890c79f78161e26fc5a87"


def test_echo_returns_challenge():
    """Test that echo returns the challenge unchanged."""
    assert generate_response("abc123", "echo", secret="s") == "abc123"
    assert generate_response("", "echo") == ""


def test_default_method_is_hmac():
    """Test that hmac is used when no method is given."""
    assert generate_response("abc123", secret="s") == generate_response(
        "abc123", "hmac", secret="s"
    )


@pytest.mark.parametrize("method", ["hmac", "hash"])
def test_keyed_methods_deterministic(method):
    """Test that keyed methods produce consistent results."""
    result1 = generate_response("challenge-xyz", method, secret="secret")
    result2 = generate_response("challenge-xyz", method, secret="secret")
    assert result1 == result2
    assert re.fullmatch(r"[0-9a-f]{64}", result1)


@pytest.mark.parametrize("method", ["hmac", "hash"])
def test_keyed_methods_depend_on_secret(method):
    """Test that a different secret gives a different response."""
    assert generate_response("abc123", method, secret="one") != generate_response(
        "abc123", method, secret="two"
    )


def test_custom_with_string_data():
    """Test custom method joins challenge and string data with a colon."""
    result = generate_response("abc123", "custom", custom_data="hello")
    assert result == "b4ef7f270cd1b96ee022f07d9092fabe6f7f927492a9e56e80239ad61d62cd2a"


def test_custom_with_dict_data():
    """Test custom method serializes dicts as compact JSON in insertion order."""
    result = generate_response("abc123", "custom", custom_data={"user": "alice", "n": 1})
    assert result == "bcb50df708c54eca165d0167054c8b7cc8f18be6f728a17d998765e9780468e8"


def test_custom_with_list_data():
    """Test custom method with list data."""
    result = generate_response("abc123", "custom", custom_data=[1, 2, 3])
    assert result == "aaaf9e1402210543c2ca0dc7c4457e2cad8aeb31fbd22143883c0cf2ab5c4975"


def test_custom_keeps_non_ascii_characters():
    """Test that non-ASCII characters are not escaped before hashing."""
    result = generate_response("abc123", "custom", custom_data={"name": "José"})
    assert result == "0bf2dd029b98d170065d7c27c42f8873d958d2a9d5413195454a1aafeaaae546"


def test_custom_ignores_secret():
    """Test that the secret does not affect custom responses."""
    assert generate_response(
        "abc123", "custom", secret="a", custom_data="x"
    ) == generate_response("abc123", "custom", secret="b", custom_data="x")


def test_custom_varies_with_data():
    """Test that different custom data gives different responses."""
    result1 = generate_response("abc123", "custom", custom_data={"n": 1})
    result2 = generate_response("abc123", "custom", custom_data={"n": 2})
    assert result1 != result2


@pytest.mark.parametrize("custom_data", [None, ""])
def test_custom_requires_data(custom_data):
    """Test that custom method without data raises."""
    with pytest.raises(KeyClaimError, match="Custom data is required"):
        generate_response("abc123", "custom", custom_data=custom_data)


def test_custom_unserializable_data():
    """Test that data which cannot be JSON encoded raises KeyClaimError."""
    with pytest.raises(KeyClaimError, match="not JSON serializable"):
        generate_response("abc123", "custom", custom_data={"value": object()})


def test_unknown_method_names_method():
    """Test that an unknown method raises an error naming it."""
    with pytest.raises(KeyClaimError, match="Unknown response method: sha1") as exc_info:
        generate_response("abc123", "sha1", secret="s")
    assert exc_info.value.code is None
    assert exc_info.value.status_code is None


def test_response_methods():
    """Test the list of supported methods."""
    assert RESPONSE_METHODS == ("echo", "hmac", "hash", "custom")


def test_custom_integral_float_formats_as_integer():
    """Test that 1.0 serializes as 1, as JSON.stringify does."""
    result = generate_response("abc123", "custom", custom_data={"amount": 1.0})
    assert result == hashlib.sha256(b'abc123:{"amount":1}').hexdigest()
    assert result == "dc03bf0dddd0686690217bd5e65fad6bf82d398b617e5ddaaf50b2b88666272e"


def test_custom_small_exponent_format():
    """Test that exponents are written without zero padding."""
    result = generate_response("abc123", "custom", custom_data=[1e-7])
    assert result == hashlib.sha256(b"abc123:[1e-7]").hexdigest()
    assert result == "5d59027e4e88811b35e1eff94d4e69788e9fda43f51305fe9c8794a30645a912"


def test_custom_nan_and_infinity_become_null():
    """Test that non-finite floats serialize as null."""
    result = generate_response(
        "abc123", "custom", custom_data=[float("nan"), float("inf")]
    )
    assert result == hashlib.sha256(b"abc123:[null,null]").hexdigest()


def test_custom_float_formats():
    """Test decimal, large and negative floats against JSON.stringify output."""
    result = generate_response(
        "abc123", "custom", custom_data=[0.000001, 1e21, 1e20, -0.5, 123.456]
    )
    expected = b"abc123:[0.000001,1e+21,100000000000000000000,-0.5,123.456]"
    assert result == hashlib.sha256(expected).hexdigest()
    assert result == "a77dcc76c8fa5144391e66dab6dd34d121c381bb48b0410223d62ec642d7e601"


def test_custom_non_string_keys():
    """Test that number and None keys are written as strings."""
    result = generate_response("abc123", "custom", custom_data={1: "a", 2.5: "b", None: "c"})
    assert result == hashlib.sha256(b'abc123:{"1":"a","2.5":"b","null":"c"}').hexdigest()


def test_custom_lone_surrogate_is_escaped():
    """Test that lone surrogates in custom data are written as \\u escapes."""
    result = generate_response("abc123", "custom", custom_data={"k": "\ud800"})
    assert result == hashlib.sha256(b'abc123:{"k":"\\ud800"}').hexdigest()
    assert result == "3814d0c149645d36b0536b84e47ec9b3404a20ffcd325bb9f98c6960dd453bb3"


def test_lone_surrogate_challenge_is_hashed():
    """Test that lone surrogates in a challenge hash as U+FFFD."""
    challenge = json.loads('"ab\\ud800"')
    result = generate_response(challenge, "hash", secret="s")
    assert result == hashlib.sha256(b"ab\xef\xbf\xbds").hexdigest()
    assert result == "2dd65216b05049aadfbe4680dd1769e5ac05f82213c44b35a4a0619749ac9f1f"

    assert generate_response(challenge, "hmac", secret="s") == generate_response(
        "ab\ufffd", "hmac", secret="s"
    )
