"""Async client for the Private Captcha verification API."""
from __future__ import annotations

import asyncio
import base64
import enum
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from .logging import get_logger


logger = get_logger("captcha_gateway.captcha")

GLOBAL_DOMAIN = "api.privatecaptcha.com"
EU_DOMAIN = "api.eu.privatecaptcha.com"
FORM_FIELD = "private-captcha-solution"

SOLUTIONS_COUNT = 16
SOLUTION_LENGTH = 8

# The API accepts any non-empty Origin when fetching a puzzle outside a browser.
TEST_ORIGIN = "not.empty"

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class VerifyCode(enum.IntEnum):
    """Result codes reported by the ``/verify`` endpoint."""

    NO_ERROR = 0
    ERROR_OTHER = 1
    DUPLICATE_SOLUTIONS = 2
    INVALID_SOLUTION = 3
    PARSE_RESPONSE = 4
    PUZZLE_EXPIRED = 5
    INVALID_PROPERTY = 6
    WRONG_OWNER = 7
    VERIFIED_BEFORE = 8
    MAINTENANCE_MODE = 9
    TEST_PROPERTY_ERROR = 10
    INTEGRITY_ERROR = 11

    @classmethod
    def parse(cls, value: Any) -> "VerifyCode":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.ERROR_OTHER


# Remote contract relied on by the self-test: a zero-filled stub solution is
# rejected with this code only when the key pair belongs to a real property.
SELF_TEST_PASS_CODE = VerifyCode.TEST_PROPERTY_ERROR


class PrivateCaptchaError(Exception):
    """Base class for errors raised by :class:`VerificationClient`."""


class ApiKeyError(PrivateCaptchaError):
    """Raised when a client is constructed without an API key."""


class SolutionError(PrivateCaptchaError):
    """Raised when an empty solution is submitted for verification."""


class VerificationError(PrivateCaptchaError):
    """Raised when the verification endpoint cannot produce a usable answer."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class VerifyOutput:
    """Parsed ``/verify`` response."""

    success: bool
    code: VerifyCode
    origin: str | None = None
    timestamp: str | None = None

    @classmethod
    def from_json(cls, body: Mapping[str, Any]) -> "VerifyOutput":
        return cls(
            success=body.get("success") is True,
            code=VerifyCode.parse(body.get("code", VerifyCode.ERROR_OTHER)),
            origin=body.get("origin"),
            timestamp=body.get("timestamp"),
        )


def resolve_domain(custom_domain: str, eu_isolation: bool) -> str:
    """Return the API host: custom domain, then EU isolation, then global."""

    custom = (custom_domain or "").strip().rstrip("/")
    if custom:
        if custom.startswith("api."):
            return custom
        return f"api.{custom}"
    if eu_isolation:
        return EU_DOMAIN
    return GLOBAL_DOMAIN


def stub_solutions() -> str:
    """Base64 of an all-zero solutions blob, used only for credential self-tests."""

    return base64.b64encode(b"\0" * (SOLUTIONS_COUNT * SOLUTION_LENGTH)).decode("ascii")


class VerificationClient:
    """Thin wrapper around the Private Captcha HTTP API.

    Instances are immutable; a new client is built whenever the persisted
    configuration changes.
    """

    def __init__(
        self,
        api_key: str,
        custom_domain: str = "",
        eu_isolation: bool = False,
        *,
        timeout_seconds: float = 10.0,
        max_redirects: int = 5,
        verify_attempts: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        api_key = (api_key or "").strip()
        if not api_key:
            raise ApiKeyError("API key is empty")
        self._api_key = api_key
        self._domain = resolve_domain(custom_domain, eu_isolation)
        self._timeout_seconds = timeout_seconds
        self._max_redirects = max_redirects
        self._verify_attempts = max(1, verify_attempts)
        self._transport = transport

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def verify_url(self) -> str:
        return f"https://{self._domain}/verify"

    @property
    def puzzle_url(self) -> str:
        return f"https://{self._domain}/puzzle"

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout_seconds,
            follow_redirects=True,
            max_redirects=self._max_redirects,
            transport=self._transport,
        )

    async def verify(self, solution: str) -> VerifyOutput:
        """Submit ``solution`` to the verification endpoint."""

        if not solution:
            raise SolutionError("solution is empty")

        headers = {"X-Api-Key": self._api_key, "Content-Type": "text/plain"}
        last_error: VerificationError | None = None
        for attempt in range(1, self._verify_attempts + 1):
            try:
                async with self._http() as client:
                    response = await client.post(self.verify_url, content=solution, headers=headers)
            except httpx.HTTPError as exc:
                last_error = VerificationError(f"verify request failed: {exc}")
            else:
                if response.status_code in _RETRYABLE_STATUS:
                    last_error = VerificationError(
                        f"verify returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                elif response.is_success:
                    try:
                        body = response.json()
                    except ValueError as exc:
                        raise VerificationError("verify response was not JSON") from exc
                    if not isinstance(body, dict):
                        raise VerificationError("verify response was not an object")
                    return VerifyOutput.from_json(body)
                else:
                    raise VerificationError(
                        f"verify returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

            if attempt < self._verify_attempts:
                logger.debug("captcha_verify_retry", attempt=attempt, error=str(last_error))
                await asyncio.sleep(min(2 ** (attempt - 1), 4) * 0.25)

        if last_error is None:
            raise VerificationError("verify was not attempted")
        raise last_error

    async def verify_solution(self, solution: str) -> bool:
        """Return ``True`` only when the API confirms the solution."""

        try:
            output = await self.verify(solution)
        except PrivateCaptchaError as exc:
            logger.info("captcha_verification_error", error=str(exc))
            return False
        if not output.success:
            logger.info("captcha_verification_rejected", code=output.code.name)
        return output.success

    async def verify_request(self, form: Mapping[str, Any]) -> bool:
        """Verify the solution carried by a submitted form."""

        raw = form.get(FORM_FIELD, "")
        solution = raw.strip() if isinstance(raw, str) else ""
        return await self.verify_solution(solution)

    async def fetch_test_puzzle(self, sitekey: str) -> str | None:
        """Fetch a puzzle for ``sitekey``; ``None`` on any transport or HTTP failure."""

        try:
            async with self._http() as client:
                response = await client.get(
                    self.puzzle_url,
                    params={"sitekey": sitekey},
                    headers={"Origin": TEST_ORIGIN},
                )
        except httpx.HTTPError as exc:
            logger.warning("captcha_test_puzzle_failed", error=str(exc), domain=self._domain)
            return None

        if response.status_code != 200:
            logger.warning(
                "captcha_test_puzzle_failed",
                status_code=response.status_code,
                domain=self._domain,
            )
            return None

        body = response.text
        return body or None

    async def test_current_settings(self, sitekey: str) -> bool:
        """Round-trip a stub solution to prove the API key and site key pair.

        A real property rejects the zero-filled solution with
        :data:`SELF_TEST_PASS_CODE`; anything else means the credentials or the
        domain are wrong.
        """

        try:
            puzzle = await self.fetch_test_puzzle(sitekey)
            if puzzle is None:
                return False

            payload = f"{stub_solutions()}.{puzzle}"
            output = await self.verify(payload)
        except Exception as exc:
            logger.warning("captcha_settings_test_error", error=str(exc), domain=self._domain)
            return False

        passed = output.success and output.code == SELF_TEST_PASS_CODE
        if not passed:
            logger.info(
                "captcha_settings_test_rejected",
                success=output.success,
                code=output.code.name,
                domain=self._domain,
            )
        return passed


__all__ = [
    "ApiKeyError",
    "EU_DOMAIN",
    "FORM_FIELD",
    "GLOBAL_DOMAIN",
    "PrivateCaptchaError",
    "SELF_TEST_PASS_CODE",
    "SolutionError",
    "VerificationClient",
    "VerificationError",
    "VerifyCode",
    "VerifyOutput",
    "resolve_domain",
    "stub_solutions",
]
