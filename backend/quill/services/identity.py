"""
Identity Providers

Two ways of resolving who is signing in, behind one interface:

- PasswordIdentityProvider: email + password checked against the bcrypt hash
  stored for a registered user.
- ExternalIdentityProvider: a signed assertion from an external identity
  portal; the user is upserted by the portal's identity key (open_id).

A deployment runs exactly one of them (settings.IDENTITY_PROVIDER).
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping

import jwt
from loguru import logger

from quill.config import Settings
from quill.core.errors import AuthenticationError, InvalidCredentialsError
from quill.core.security import hash_password, verify_password_async
from quill.core.timeouts import run_bounded
from quill.db.models import User
from quill.db.repositories.user_repo import UserRepository

# Assertion claim -> User column
EXTERNAL_CLAIMS = {
    "name": "name",
    "email": "email",
    "loginMethod": "login_method",
}

_dummy_hash: str | None = None


def _get_dummy_hash() -> str:
    """Hash compared against when the email is unknown, so both failures cost one bcrypt check."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("quill-dummy-password")
    return _dummy_hash


class IdentityProvider(ABC):
    """Resolve sign-in credentials to a stored User."""

    name: ClassVar[str]

    def __init__(self, user_repo: UserRepository, config: Settings):
        self.user_repo = user_repo
        self.settings = config

    @property
    def timeout(self) -> float:
        return self.settings.AUTH_OPERATION_TIMEOUT_SECONDS

    @abstractmethod
    async def authenticate(self, credentials: Mapping[str, Any]) -> User:
        """
        Return the user the credentials identify.

        Raises:
            InvalidCredentialsError / AuthenticationError on failure
        """


class PasswordIdentityProvider(IdentityProvider):
    name = "password"

    async def authenticate(self, credentials: Mapping[str, Any]) -> User:
        email = credentials["email"]
        password = credentials["password"]

        user = await run_bounded(self.user_repo.get_by_email(email), self.timeout, "User lookup")

        if user is None or not user.password_hash:
            await run_bounded(
                verify_password_async(password, _get_dummy_hash()), self.timeout, "Password check"
            )
            raise InvalidCredentialsError()

        matches = await run_bounded(
            verify_password_async(password, user.password_hash), self.timeout, "Password check"
        )
        if not matches:
            raise InvalidCredentialsError()

        return user


class ExternalIdentityProvider(IdentityProvider):
    name = "external"

    def decode_assertion(self, assertion: str) -> Dict[str, Any]:
        """
        Verify the portal's signature and return the assertion claims.

        Raises:
            AuthenticationError: Not configured, bad signature, expired, or no openId
        """
        secret = self.settings.EXTERNAL_IDENTITY_SECRET
        if not secret:
            logger.error("External sign-in attempted without EXTERNAL_IDENTITY_SECRET")
            raise AuthenticationError("External sign-in is not configured")

        options = {"require": ["exp"]}
        kwargs: Dict[str, Any] = {}
        if self.settings.EXTERNAL_IDENTITY_ISSUER:
            options["require"].append("iss")
            kwargs["issuer"] = self.settings.EXTERNAL_IDENTITY_ISSUER

        try:
            claims = jwt.decode(assertion, secret, algorithms=["HS256"], options=options, **kwargs)
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected identity assertion: {type(e).__name__}")
            raise AuthenticationError("Invalid identity assertion")

        open_id = claims.get("openId")
        if not isinstance(open_id, str) or not open_id:
            raise AuthenticationError("Invalid identity assertion")

        return claims

    async def authenticate(self, credentials: Mapping[str, Any]) -> User:
        claims = self.decode_assertion(credentials["assertion"])

        # Only claims present in the assertion are written
        attrs = {
            column: claims[claim]
            for claim, column in EXTERNAL_CLAIMS.items()
            if claim in claims
        }
        for column, value in attrs.items():
            if value is not None and not isinstance(value, str):
                logger.warning(f"Rejected identity assertion: non-string {column} claim")
                raise AuthenticationError("Invalid identity assertion")

        user = await run_bounded(
            self.user_repo.upsert_by_external_id(claims["openId"], **attrs),
            self.timeout,
            "User upsert",
        )
        logger.info(f"External identity resolved to user {user.id}")
        return user


PROVIDERS = {
    PasswordIdentityProvider.name: PasswordIdentityProvider,
    ExternalIdentityProvider.name: ExternalIdentityProvider,
}


def get_identity_provider(config: Settings, user_repo: UserRepository) -> IdentityProvider:
    """Instantiate the provider configured for this deployment."""
    try:
        provider_cls = PROVIDERS[config.IDENTITY_PROVIDER]
    except KeyError:
        raise ValueError(f"Unknown identity provider: {config.IDENTITY_PROVIDER}")
    return provider_cls(user_repo, config)
