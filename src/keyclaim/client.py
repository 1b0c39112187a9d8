"""KeyClaimClient - HTTP client for the KeyClaim challenge-response API."""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

import httpx

from keyclaim.errors import KeyClaimError
from keyclaim.responses import generate_response
from keyclaim.types import (
    CreateChallengeResponse,
    KeyClaimConfig,
    Quota,
    ValidateChallengeResponse,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://keyclaim.org"
API_KEY_PREFIX = "kc_"
DEFAULT_TTL = 30
REQUEST_TIMEOUT = 30.0


def _json_body(response: httpx.Response) -> dict:
    """Return the response body as a dict, or an empty dict if it is not a JSON object."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _parse_validation(data: dict) -> ValidateChallengeResponse:
    quota = None
    raw_quota = data.get("quota")
    if isinstance(raw_quota, dict):
        quota = Quota(
            used=raw_quota.get("used", 0),
            remaining=raw_quota.get("remaining", 0),
            quota=raw_quota.get("quota", 0),
        )

    return ValidateChallengeResponse(
        valid=data["valid"],
        signature=data.get("signature"),
        quota=quota,
        error=data.get("error"),
    )


class KeyClaimClient:
    """
    Client for creating and validating KeyClaim challenges.

    Handles:
    - Challenge creation via /api/challenge/create
    - Response generation (echo, hmac, hash, custom)
    - Validation via /api/challenge/validate, returning ``valid=False``
      results instead of raising when the server rejects a response
    - Normalizing transport and API failures to ``KeyClaimError``

    Example:
        >>> async with KeyClaimClient("kc_your_api_key") as client:
        ...     result = await client.validate("hmac")
        ...     print(result.valid)
    """

    def __init__(
        self,
        config: Union[KeyClaimConfig, Mapping, str],
        secret: Optional[str] = None,
    ):
        """
        Initialize the KeyClaimClient.

        Args:
            config: A KeyClaimConfig, a mapping with ``api_key`` (or ``apiKey``)
                and optional ``secret``, or the API key string itself
            secret: Secret for response generation when not given in ``config``
                (default: the API key)

        Raises:
            KeyClaimError: If the API key does not start with "kc_"
        """
        if isinstance(config, KeyClaimConfig):
            api_key, config_secret = config.api_key, config.secret
        elif isinstance(config, Mapping):
            api_key = config.get("api_key") or config.get("apiKey")
            config_secret = config.get("secret")
        else:
            api_key, config_secret = config, None

        if not isinstance(api_key, str) or not api_key.startswith(API_KEY_PREFIX):
            raise KeyClaimError(
                'Invalid API key format. API key must start with "kc_"'
            )

        self._api_key = api_key
        self._secret = config_secret or secret or api_key
        self.base_url = BASE_URL

        self._client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            timeout=REQUEST_TIMEOUT,
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def secret(self) -> str:
        return self._secret

    async def create_challenge(self, ttl: Optional[int] = DEFAULT_TTL) -> CreateChallengeResponse:
        """
        Create a new challenge.

        Args:
            ttl: Challenge lifetime in seconds (default: 30)

        Returns:
            CreateChallengeResponse with the challenge string and its expiry

        Raises:
            KeyClaimError: If the request fails or the response is malformed
        """
        ttl = ttl or DEFAULT_TTL
        logger.debug("Creating challenge (ttl=%s)", ttl)
        try:
            response = await self._client.post(
                f"{self.base_url}/api/challenge/create",
                json={"ttl": ttl},
            )
            response.raise_for_status()
            data = response.json()

            return CreateChallengeResponse(
                challenge=data["challenge"],
                expires_in=data["expires_in"],
                encrypted=data.get("encrypted"),
            )
        except Exception as exc:
            raise self._handle_error(exc, "Failed to create challenge") from exc

    def generate_response(
        self, challenge: str, method: str = "hmac", custom_data: Any = None
    ) -> str:
        """
        Generate a response for a challenge using this client's secret.

        Args:
            challenge: The challenge string
            method: Response method ('echo', 'hmac', 'hash', or 'custom')
            custom_data: Data for the 'custom' method

        Returns:
            Generated response string

        Raises:
            KeyClaimError: If the method is unknown or custom data is missing
        """
        return generate_response(challenge, method, self._secret, custom_data)

    async def validate_challenge(
        self,
        challenge: str,
        response: str,
        decrypted_challenge: Optional[str] = None,
    ) -> ValidateChallengeResponse:
        """
        Validate a challenge-response pair.

        A rejection that the server answers with a ``valid`` field is returned
        as ``ValidateChallengeResponse(valid=False, error=...)``.

        Args:
            challenge: The challenge string
            response: The generated response
            decrypted_challenge: Decrypted challenge, for encrypted challenges

        Returns:
            ValidateChallengeResponse

        Raises:
            KeyClaimError: On network errors, malformed bodies or other API errors
        """
        body: dict[str, str] = {"challenge": challenge, "response": response}
        if decrypted_challenge is not None:
            body["decryptedChallenge"] = decrypted_challenge

        logger.debug("Validating challenge response")
        try:
            http_response = await self._client.post(
                f"{self.base_url}/api/challenge/validate",
                json=body,
            )
            http_response.raise_for_status()
            result = _parse_validation(http_response.json())
        except httpx.HTTPStatusError as exc:
            data = _json_body(exc.response)
            if "valid" in data:
                logger.debug(
                    "Validation rejected with status %s", exc.response.status_code
                )
                return ValidateChallengeResponse(
                    valid=False,
                    error=data.get("error") or "Validation failed",
                )
            raise self._handle_error(exc, "Failed to validate challenge") from exc
        except Exception as exc:
            raise self._handle_error(exc, "Failed to validate challenge") from exc

        logger.debug("Validation completed (valid=%s)", result.valid)
        return result

    async def validate(
        self,
        method: str = "hmac",
        ttl: Optional[int] = DEFAULT_TTL,
        custom_data: Any = None,
    ) -> ValidateChallengeResponse:
        """
        Run the complete flow: create a challenge, answer it and validate.

        Args:
            method: Response method (default: 'hmac')
            ttl: Challenge lifetime in seconds (default: 30)
            custom_data: Data for the 'custom' method

        Returns:
            ValidateChallengeResponse from the validation step

        Raises:
            KeyClaimError: If any step fails
        """
        try:
            created = await self.create_challenge(ttl)
            response = self.generate_response(created.challenge, method, custom_data)
            return await self.validate_challenge(created.challenge, response)
        except KeyClaimError:
            raise
        except Exception as exc:
            raise self._handle_error(exc, "Validation flow failed") from exc

    def _handle_error(self, error: Exception, default_message: str) -> KeyClaimError:
        """Convert an exception raised during a request to KeyClaimError."""
        if isinstance(error, KeyClaimError):
            return error

        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            data = _json_body(error.response)
            error_message = data.get("error") or data.get("message") or str(error)
            logger.warning("%s: HTTP %s", default_message, status_code)
            return KeyClaimError(
                error_message or default_message,
                data.get("error"),
                status_code,
            )

        if isinstance(error, httpx.RequestError):
            logger.warning("%s: %s", default_message, error.__class__.__name__)
            return KeyClaimError(
                "Network error: No response received from server",
                "network_error",
            )

        logger.warning("%s: %r", default_message, error)
        if isinstance(error, KeyError):
            return KeyClaimError(
                f"{default_message}: response is missing {error}", "unknown_error"
            )
        return KeyClaimError(str(error) or default_message, "unknown_error")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "KeyClaimClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


def create_client(
    config: Union[KeyClaimConfig, Mapping, str], secret: Optional[str] = None
) -> KeyClaimClient:
    """Create a KeyClaimClient. Same arguments as the constructor."""
    return KeyClaimClient(config, secret)
