from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status

from social_auth.api.deps import get_auth_service, get_current_user
from social_auth.core.config import settings
from social_auth.models import User
from social_auth.schemas.auth import (
    SignupRequest,
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
    TokenResponse,
    UserResponse,
    MessageResponse,
    ErrorResponse,
)
from social_auth.services.access_control import TOKEN_COOKIE_NAME
from social_auth.services.auth_service import AuthService, AuthResult

# ============================================================
# Router Setup
# ============================================================

router = APIRouter(tags=["Authentication"])


def _send_token(result: AuthResult, response: Response, auth_service: AuthService) -> TokenResponse:
    """
    Put the token in an http-only cookie and build the response body.
    """
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=result.token,
        expires=auth_service.clock.now() + timedelta(days=settings.JWT_COOKIE_EXPIRES_IN),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return TokenResponse(
        access_token=result.token,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
    )


# ============================================================
# Signup Endpoint
# ============================================================

@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User created successfully"},
        400: {"model": ErrorResponse, "description": "Passwords do not match"},
        409: {"model": ErrorResponse, "description": "Email or username already taken"},
    }
)
async def signup(
    user_data: SignupRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user account.

    Returns the session token and the new user.
    """
    result = await auth_service.signup(user_data)
    return _send_token(result, response, auth_service)


# ============================================================
# Login Endpoint
# ============================================================

@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        200: {"description": "Login successful"},
        400: {"model": ErrorResponse, "description": "Missing identifier or password"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    }
)
async def login(
    login_data: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate with email or username and password.
    """
    result = await auth_service.login(
        login_data.password,
        email=login_data.email,
        username=login_data.username,
    )
    return _send_token(result, response, auth_service)


# ============================================================
# Logout Endpoint
# ============================================================

@router.get("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Replace the token cookie with a short-lived placeholder.

    Tokens held elsewhere stay valid until they expire.
    """
    cookie = auth_service.logout()
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=cookie.value,
        expires=cookie.expires_at,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return MessageResponse(message="Logged out")


# ============================================================
# Forgot Password Endpoint
# ============================================================

@router.post(
    "/forgotPassword",
    response_model=MessageResponse,
    responses={
        200: {"description": "Reset code sent"},
        404: {"model": ErrorResponse, "description": "No such user"},
        500: {"model": ErrorResponse, "description": "Email could not be sent"},
    }
)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Email a 6-digit reset code to the account owner.
    """
    await auth_service.forgot_password(
        email=request_data.email,
        username=request_data.username,
    )
    return MessageResponse(message="Token sent to email!")


# ============================================================
# Reset Password Endpoint
# ============================================================

@router.patch(
    "/resetPassword",
    response_model=TokenResponse,
    responses={
        200: {"description": "Password reset, user logged in"},
        400: {"model": ErrorResponse, "description": "Invalid or expired code"},
    }
)
async def reset_password(
    request_data: ResetPasswordRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Set a new password with the emailed code and log the user in.
    """
    result = await auth_service.reset_password(
        code=request_data.code,
        password=request_data.password,
        password_confirm=request_data.password_confirm,
        email=request_data.email,
        username=request_data.username,
    )
    return _send_token(result, response, auth_service)


# ============================================================
# Change Password Endpoint
# ============================================================

@router.patch(
    "/updateMyPassword",
    response_model=TokenResponse,
    responses={
        200: {"description": "Password changed"},
        400: {"model": ErrorResponse, "description": "Missing new password"},
        401: {"model": ErrorResponse, "description": "Wrong current password or not logged in"},
    },
)
async def update_password(
    request_data: UpdatePasswordRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Change the password of the logged-in user and issue a fresh token."""
    result = await auth_service.update_password(
        current_user,
        request_data.current_password,
        request_data.new_password,
    )
    return _send_token(result, response, auth_service)
