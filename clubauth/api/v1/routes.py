"""
API v1 routes.

Defines REST endpoints for club signup, email verification, login and
password recovery, plus the bearer-protected account endpoints.

Handlers are plain functions so FastAPI runs them in its threadpool;
bcrypt and database calls never block the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from clubauth.api.dependencies import get_auth_service, get_current_account
from clubauth.api.models import (
    AccountView,
    AuthResponse,
    EmailRequest,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    ValidationErrorResponse,
    VerifyOtpRequest,
)
from clubauth.config.settings import Settings, get_settings
from clubauth.domain.auth import AuthResult, AuthService
from clubauth.domain.exceptions import (
    AccountNotFound,
    DeliveryError,
    DuplicateActive,
    InvalidCredentials,
    InvalidOrExpired,
    NotVerified,
    NoUnverifiedAccount,
    NoVerifiedAccount,
)
from clubauth.domain.ports import Account

router = APIRouter(tags=["v1"])

_VALIDATION = {400: {"model": ValidationErrorResponse, "description": "Validation error"}}
_DELIVERY = {500: {"model": ErrorResponse, "description": "Email delivery failed"}}


def _error(status_code: int, detail: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=detail)


def _delivery_failed() -> HTTPException:
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send email")


def _auth_response(message: str, result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=result.token,
        account=AccountView(**result.account.public_view()),
    )


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_VALIDATION, **_DELIVERY},
    summary="Sign up a new club",
    description="Create an unverified club account. "
    "A 6-digit one-time code is emailed to the provided address.",
)
def signup(
    request_data: SignupRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> SignupResponse:
    """
    Register a club and send its verification code.

    - **name**: Club name (unique)
    - **description**: Club description
    - **email**: Contact email (unique)
    - **password**: Password (minimum 6 characters)
    """
    try:
        email = service.signup(
            request_data.name,
            request_data.description,
            request_data.email,
            request_data.password,
        )
    except DuplicateActive:
        raise _error(
            status.HTTP_400_BAD_REQUEST, "Club with this email or name already exists"
        ) from None
    except DeliveryError:
        raise _delivery_failed() from None
    return SignupResponse(
        message="OTP sent to your email. Please verify within 10 minutes.",
        email=email,
        expires_in_seconds=settings.otp_ttl_seconds,
    )


@router.post(
    "/verify-otp",
    response_model=AuthResponse,
    responses={
        **_VALIDATION,
        404: {"model": ErrorResponse, "description": "Club not found"},
    },
    summary="Verify email with one-time code",
    description="Submit the 6-digit code received by email. "
    "On success the club is verified and a session token is returned.",
)
def verify_otp(
    request_data: VerifyOtpRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        result = service.verify_otp(request_data.email, request_data.otp)
    except InvalidOrExpired:
        raise _error(status.HTTP_400_BAD_REQUEST, "Invalid or expired OTP") from None
    except AccountNotFound:
        raise _error(status.HTTP_404_NOT_FOUND, "Club not found") from None
    return _auth_response("Email verified successfully", result)


@router.post(
    "/resend-otp",
    response_model=MessageResponse,
    responses={
        **_VALIDATION,
        **_DELIVERY,
        404: {"model": ErrorResponse, "description": "No unverified club"},
    },
    summary="Resend verification code",
)
def resend_otp(
    request_data: EmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Issue a fresh code for a club still awaiting verification; earlier codes stop working."""
    try:
        service.resend_otp(request_data.email)
    except NoUnverifiedAccount:
        raise _error(
            status.HTTP_404_NOT_FOUND, "No unverified club found with this email"
        ) from None
    except DeliveryError:
        raise _delivery_failed() from None
    return MessageResponse(message="New OTP sent to your email")


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        **_VALIDATION,
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
    },
    summary="Log in",
)
def login(
    request_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Exchange email and password for a session token.

    Unknown email and wrong password share one error to prevent enumeration.
    """
    try:
        result = service.login(request_data.email, request_data.password)
    except InvalidCredentials:
        raise _error(status.HTTP_401_UNAUTHORIZED, "Invalid email or password") from None
    except NotVerified:
        raise _error(status.HTTP_403_FORBIDDEN, "Please verify your email first") from None
    return _auth_response("Login successful", result)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={
        **_VALIDATION,
        **_DELIVERY,
        404: {"model": ErrorResponse, "description": "No verified club"},
    },
    summary="Request a password reset code",
)
def forgot_password(
    request_data: EmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        service.forgot_password(request_data.email)
    except NoVerifiedAccount:
        raise _error(
            status.HTTP_404_NOT_FOUND, "No verified club found with this email"
        ) from None
    except DeliveryError:
        raise _delivery_failed() from None
    return MessageResponse(message="Password reset OTP sent to your email")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={
        **_VALIDATION,
        404: {"model": ErrorResponse, "description": "Club not found"},
    },
    summary="Reset password with one-time code",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        service.reset_password(request_data.email, request_data.otp, request_data.new_password)
    except InvalidOrExpired:
        raise _error(status.HTTP_400_BAD_REQUEST, "Invalid or expired OTP") from None
    except AccountNotFound:
        raise _error(status.HTTP_404_NOT_FOUND, "Club not found") from None
    return MessageResponse(
        message="Password reset successfully. You can now login with your new password."
    )


@router.get(
    "/me",
    response_model=AccountView,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
    summary="Get the authenticated club",
)
def get_me(account: Account = Depends(get_current_account)) -> AccountView:
    return AccountView(**account.public_view())


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
    summary="Delete the authenticated club",
    description="Delete the club with all of its members and events. "
    "Outstanding one-time codes for its email stop working.",
)
def delete_me(
    account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    try:
        service.delete_account(account.id)
    except AccountNotFound:
        raise _error(status.HTTP_404_NOT_FOUND, "Club not found") from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
