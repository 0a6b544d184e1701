import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Mapping, Optional

from jose import JWTError, jwt

from ticketdesk.core.errors import UnauthenticatedError

LOG = logging.getLogger(__name__)

DEFAULT_EXPIRE_MINUTES = 60
REGISTERED_CLAIMS = frozenset({"iss", "aud", "nbf", "exp", "iat", "sub", "jti"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and validates HS256 session tokens.

    Tokens are stateless: validity is decided by signature, issuer,
    audience and the [nbf, exp] window alone.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        issuer: str = "TicketSystem",
        audience: str = "TicketSystemUsers",
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret_key:
            raise ValueError("A token signing secret is required")
        self._secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm
        self._clock = clock

    def sign_token(
        self, claims: Mapping[str, str], expires_in_minutes: int = DEFAULT_EXPIRE_MINUTES
    ) -> str:
        """Create a signed token carrying ``claims``."""
        if expires_in_minutes <= 0:
            expires_in_minutes = DEFAULT_EXPIRE_MINUTES
        now = self._clock()
        to_encode = dict(claims)
        to_encode.update(
            {
                "iss": self.issuer,
                "aud": self.audience,
                "iat": now,
                "nbf": now,
                "exp": now + timedelta(minutes=expires_in_minutes),
            }
        )
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def validate_token(self, token: str, key: Optional[str] = None) -> Dict[str, str]:
        """Verify ``token`` and return its custom claims.

        Raises UnauthenticatedError on a bad signature, wrong issuer or
        audience, or when the current time is outside [nbf, exp].
        """
        if not token:
            raise UnauthenticatedError("Token is missing")
        try:
            payload = jwt.decode(
                token,
                key if key is not None else self._secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                # nbf and exp are checked below against the injected clock
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "require_exp": True,
                    "require_nbf": True,
                },
            )
        except JWTError as exc:
            LOG.info("Rejected session token: %s", exc)
            raise UnauthenticatedError("Could not validate credentials") from exc
        self._check_lifetime(payload)
        return {k: v for k, v in payload.items() if k not in REGISTERED_CLAIMS}

    def _check_lifetime(self, payload: Mapping) -> None:
        """Zero-leeway check that nbf <= now <= exp."""
        try:
            not_before = float(payload["nbf"])
            expires = float(payload["exp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise UnauthenticatedError("Could not validate credentials") from exc
        now = self._clock().timestamp()
        if now < not_before:
            LOG.info("Rejected session token: not yet valid")
            raise UnauthenticatedError("Could not validate credentials")
        if now > expires:
            LOG.info("Rejected session token: expired")
            raise UnauthenticatedError("Could not validate credentials")
