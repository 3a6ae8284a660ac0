from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Any, Optional, Union
import hmac
import secrets
import uuid

from jose import JWTError, jwt

# Use bcrypt directly to avoid passlib/bcrypt version conflicts
import bcrypt

# =====================================================
# Application Settings
# =====================================================
from social_auth.core.config import settings
from social_auth.core.clock import Clock, SystemClock


# =====================================================
# Password Hashing
# =====================================================
# bcrypt ignores everything past 72 bytes; newer releases raise instead,
# so the input is cut explicitly.
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """
    Salted one-way hashing and verification of passwords with bcrypt.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        # Ready before the first lookup miss, at the same cost factor
        self._dummy_hash = bcrypt.hashpw(
            secrets.token_bytes(16),
            bcrypt.gensalt(rounds=rounds)
        )

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        """
        Hash a plain-text password using bcrypt.

        Raises:
            ValueError: If the password is empty
        """
        if not password:
            raise ValueError("Password cannot be empty")
        return bcrypt.hashpw(
            self._encode(password),
            bcrypt.gensalt(rounds=self.rounds)
        ).decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a plain-text password against a bcrypt hash.

        Returns False instead of raising for empty input or a malformed hash.
        """
        if not plain_password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                self._encode(plain_password),
                hashed_password.encode("utf-8")
            )
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plain_password: str) -> bool:
        """
        Spend one verification's worth of work and return False.

        Used when no account matches, so an unknown identifier takes as
        long to reject as a wrong password.
        """
        bcrypt.checkpw(self._encode(plain_password or " "), self._dummy_hash)
        return False


# =====================================================
# Session Tokens
# =====================================================
TOKEN_TYPE_ACCESS = "access"


class TokenInvalid(Exception):
    """
    Raised for any token that cannot be trusted.

    Bad signatures, malformed payloads and expired tokens all end up
    here so callers cannot tell them apart.
    """
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """
    Signs and verifies the JWT session tokens handed to clients.

    The secret is passed in at construction; the module-level ``token_codec``
    below is built once from settings and shared by every request.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=90),
        clock: Optional[Clock] = None,
    ):
        if not secret:
            raise ValueError("Token secret cannot be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime
        self.clock = clock or SystemClock()

    @property
    def lifetime_seconds(self) -> int:
        return int(self.lifetime.total_seconds())

    def issue(self, user_id: Union[str, Any]) -> str:
        """
        Create a signed access token for a user.
        """
        # Fractional NumericDate: microsecond precision for the password watermark
        issued_at = round(self.clock.now().timestamp(), 6)

        # JWT payload
        to_encode = {
            "sub": str(user_id),                        # Subject (user ID)
            "iat": issued_at,                           # Issued at
            "exp": issued_at + self.lifetime_seconds,   # Expiration time
            "type": TOKEN_TYPE_ACCESS,                  # Token type
            "jti": str(uuid.uuid4())                    # Unique token ID
        }

        return jwt.encode(to_encode, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token and return its claims.

        Expiry is checked against the injected clock rather than by jose,
        so tests can move time forward.

        Raises:
            TokenInvalid: For every kind of failure
        """
        if not token:
            raise TokenInvalid("empty token")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False}
            )
        except JWTError as e:
            raise TokenInvalid(str(e)) from e

        if payload.get("type") != TOKEN_TYPE_ACCESS:
            raise TokenInvalid("wrong token type")

        try:
            claims = TokenClaims(
                user_id=uuid.UUID(payload["sub"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise TokenInvalid("malformed payload") from e

        if claims.expires_at <= self.clock.now():
            raise TokenInvalid("token expired")

        return claims


# =====================================================
# Password Reset Codes
# =====================================================
class ResetCodeGenerator:
    """
    Six-digit verification codes for the forgot-password flow.
    """
    LOWEST = 100000
    HIGHEST = 999999

    def __init__(self, window_seconds: int = 300):
        self.window = timedelta(seconds=window_seconds)

    def generate(self) -> str:
        """Draw a fresh code uniformly from [100000, 999999]."""
        return str(self.LOWEST + secrets.randbelow(self.HIGHEST - self.LOWEST + 1))

    def is_fresh(self, issued_at: Optional[datetime], now: datetime) -> bool:
        """A code is usable inside the window and never when issued in the future."""
        if issued_at is None:
            return False
        return now - self.window < issued_at <= now

    @staticmethod
    def matches(stored: Optional[str], supplied: Optional[str]) -> bool:
        if not stored or not supplied:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


# Shared instances built from settings
password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)

token_codec = TokenCodec(
    secret=settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    lifetime=timedelta(minutes=settings.JWT_EXPIRES_IN_MINUTES),
)

reset_code_generator = ResetCodeGenerator(
    window_seconds=settings.RESET_CODE_EXPIRE_SECONDS
)
