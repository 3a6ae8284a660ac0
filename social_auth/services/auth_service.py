import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Protocol

from social_auth.core.clock import Clock, as_utc
from social_auth.core.config import settings
from social_auth.core.exceptions import (
    AuthenticationError,
    InvalidCodeError,
    NotFoundError,
    ValidationError,
)
from social_auth.core.security import (
    PasswordHasher,
    ResetCodeGenerator,
    TokenCodec,
    password_hasher,
    reset_code_generator,
    token_codec,
)
from social_auth.models import User, UserRole
from social_auth.repositories.user_repo import UserDirectory
from social_auth.schemas.auth import SignupRequest
from social_auth.utils.email import NotificationSender, build_reset_code_message

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Incorrect email or password"

# Cookie value sent on logout; the gate treats it as "no token"
LOGGED_OUT_TOKEN = "loggedout"
LOGOUT_COOKIE_TTL = timedelta(seconds=10)

# Token iat has microsecond precision; the watermark sits one tick before
# the change so only the token issued alongside it stays valid.
PASSWORD_CHANGE_SKEW = timedelta(microseconds=1)


class SocialGraph(Protocol):
    async def follow(self, user_id: Any, target_user_id: Any) -> None: ...


@dataclass
class AuthResult:
    """A user together with the session token just issued for them."""
    user: User
    token: str
    expires_in: int


@dataclass
class LogoutCookie:
    value: str
    expires_at: datetime


class AuthService:
    """
    Service class for authentication operations.

    Every flow is stateless across requests except the two-step password
    reset, whose state lives on the user record.
    """
    def __init__(
        self,
        directory: UserDirectory,
        notifier: NotificationSender,
        hasher: PasswordHasher = password_hasher,
        codec: TokenCodec = token_codec,
        codes: ResetCodeGenerator = reset_code_generator,
        clock: Optional[Clock] = None,
        follows: Optional[SocialGraph] = None,
        default_follow_user_id: Optional[Any] = settings.DEFAULT_FOLLOW_USER_ID,
    ):
        """
        Args:
            directory: Where users are looked up and saved
            notifier: Delivers reset codes
            hasher: Password hashing
            codec: Session token signing
            codes: Reset code generation and freshness checks
            clock: Time source; defaults to the codec's clock
            follows: Social graph used for the default follow on signup
            default_follow_user_id: Account every new user follows
        """
        self.directory = directory
        self.notifier = notifier
        self.hasher = hasher
        self.codec = codec
        self.codes = codes
        self.clock = clock or codec.clock
        self.follows = follows
        self.default_follow_user_id = default_follow_user_id

    # ============================================================
    # Signup
    # ============================================================
    async def signup(self, data: SignupRequest) -> AuthResult:
        """
        Register a new user and log them in.

        Raises:
            ValidationError: If the passwords differ
            ConflictError: If the email or username is taken
        """
        if not data.password:
            raise ValidationError("Please provide a password")
        if data.password != data.password_confirm:
            raise ValidationError("password and password_confirm should be equal")

        user = await self.directory.create(
            email=data.email,
            username=data.username,
            password_hash=self.hasher.hash(data.password),
            role=UserRole.USER,
            name=data.name,
            gender=data.gender,
            status=data.status,
            birthdate=data.birthdate,
        )
        logger.info("Registered user %s", user.id)

        await self._follow_default_account(user)

        return self._issue(user)

    async def _follow_default_account(self, user: User) -> None:
        """Best effort: a failure here never undoes the signup."""
        target = self.default_follow_user_id
        if self.follows is None or target is None or str(target) == str(user.id):
            return

        try:
            await self.follows.follow(user.id, target)
        except Exception as e:
            logger.warning(
                "Default follow of %s failed for new user %s: %s", target, user.id, e
            )

    # ============================================================
    # Login / Logout
    # ============================================================
    async def login(
        self,
        password: Optional[str],
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> AuthResult:
        """
        Authenticate by email or username.

        Unknown identifiers and wrong passwords raise the same error.
        """
        if (not email and not username) or not password:
            raise ValidationError("Please provide email/username and password!")

        user = await self.directory.find_by_identifier(email=email, username=username)

        if user is None:
            self.hasher.verify_dummy(password)
            logger.info("Login failed: unknown identifier")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed for user %s", user.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("Login: %s", user.id)
        return self._issue(user)

    def logout(self) -> LogoutCookie:
        """
        Return a placeholder cookie that expires almost immediately.

        Tokens already handed out stay valid until they expire.
        """
        return LogoutCookie(
            value=LOGGED_OUT_TOKEN,
            expires_at=self.clock.now() + LOGOUT_COOKIE_TTL,
        )

    # ============================================================
    # Password Reset - Request
    # ============================================================
    async def forgot_password(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> None:
        """
        Store a fresh reset code on the user and email it.

        The code is saved before sending and is left in place if the
        email fails, so it can still be used within its window.

        Raises:
            NotFoundError: If no user matches
            NotificationError: If the email could not be sent
        """
        if not email and not username:
            raise ValidationError("Please provide email/username!")

        user = await self.directory.find_by_identifier(email=email, username=username)
        if user is None:
            raise NotFoundError("There is no user with this email/username")

        code = self.codes.generate()
        user.set_reset_code(code, self.clock.now())
        await self.directory.save(user)

        subject, body = build_reset_code_message(
            code, int(self.codes.window.total_seconds())
        )
        await self.notifier.send(user.email, subject, body)
        logger.info("Password reset code sent to user %s", user.id)

    # ============================================================
    # Password Reset - Reset Password
    # ============================================================
    async def reset_password(
        self,
        code: str,
        password: str,
        password_confirm: str,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> AuthResult:
        """
        Set a new password using an emailed code and log the user in.

        Raises:
            InvalidCodeError: If the user, code or time window does not check out
            ValidationError: If the passwords differ
        """
        user = None
        if email or username:
            user = await self.directory.find_by_identifier(email=email, username=username)

        now = self.clock.now()
        if (
            user is None
            or not self.codes.matches(user.reset_code, code)
            or not self.codes.is_fresh(as_utc(user.reset_code_issued_at), now)
        ):
            raise InvalidCodeError("Code is invalid or has expired")

        if not password or password != password_confirm:
            raise ValidationError("Password should match the password confirm")

        self._set_password(user, password, now)
        user.clear_reset_code()
        await self.directory.save(user)
        logger.info("Password reset for user %s", user.id)

        return self._issue(user)

    # ============================================================
    # Change Password
    # ============================================================
    async def update_password(
        self,
        user: User,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> AuthResult:
        """
        Change the password of an authenticated user.

        Every token issued before the change stops working.

        Raises:
            AuthenticationError: If the current password is wrong
            ValidationError: If no new password was given
        """
        if not self.hasher.verify(current_password, user.password_hash):
            raise AuthenticationError("Your current password is wrong.")

        if not new_password:
            raise ValidationError("Please provide new password")

        self._set_password(user, new_password, self.clock.now())
        await self.directory.save(user)
        logger.info("Password changed for user %s", user.id)

        return self._issue(user)

    # ============================================================
    # Helper Methods
    # ============================================================
    def _set_password(self, user: User, password: str, now: datetime) -> None:
        user.password_hash = self.hasher.hash(password)
        user.password_changed_at = now - PASSWORD_CHANGE_SKEW

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(
            user=user,
            token=self.codec.issue(user.id),
            expires_in=self.codec.lifetime_seconds,
        )
