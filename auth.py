"""
Authentication and authorization.

``protect`` resolves the bearer token to the current user; ``restrict_to``
builds a dependency allowing only the given roles. The endpoint functions
below issue tokens for signup, login and the password flows.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer

import mailer
from config import settings
from database import utcnow
from errors import AppError
from models import User
from schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
)
from security import (
    changed_password_after,
    create_access_token,
    create_password_reset_token,
    decode_access_token,
    hash_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def send_token(user: Dict[str, Any], status_code: int = status.HTTP_200_OK) -> JSONResponse:
    token = create_access_token(str(user["_id"]))
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "status": "success",
                "token": token,
                "data": {"user": User.to_public(user)},
            }
        ),
    )


async def protect(token: Optional[str] = Depends(oauth2_scheme)) -> Dict[str, Any]:
    if not token:
        raise AppError("You are not logged in! Please log in to get access.", 401)

    payload = decode_access_token(token)
    user_id = payload.get("id")
    if not user_id:
        raise AppError("Invalid token. Please log in again!", 401)

    current_user = User.find_by_id(user_id)
    if current_user is None:
        raise AppError("The user belonging to this token does no longer exist.", 401)

    if changed_password_after(current_user, payload.get("iat")):
        raise AppError("User recently changed password! Please log in again.", 401)

    return current_user


def restrict_to(*roles: str):
    async def check_role(current_user: Dict[str, Any] = Depends(protect)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            raise AppError("You do not have permission to perform this action.", 403)
        return current_user

    return check_role


def signup(payload: SignupRequest):
    new_user = User.create(
        {
            "name": payload.name,
            "email": str(payload.email),
            "photo": payload.photo,
            "password": payload.password,
            "password_confirm": payload.password_confirm,
        }
    )
    logger.info("New user signed up: %s", new_user["email"])
    return send_token(new_user, status.HTTP_201_CREATED)


def login(payload: LoginRequest):
    if not payload.email or not payload.password:
        raise AppError("Please enter email and password!", 400)

    user = User.find_one({"email": payload.email.lower()}, include_hidden=True)
    if user is None or not verify_password(payload.password, user.get("password", "")):
        raise AppError("Invalid email or password.", 401)

    return send_token(user)


async def forgot_password(payload: ForgotPasswordRequest, request: Request):
    user = User.find_one({"email": str(payload.email).lower()})
    if user is None:
        raise AppError("There is no user with that email address.", 404)

    reset_token, token_hash = create_password_reset_token()
    expires = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES)
    User.set_fields(
        user["_id"],
        values={"password_reset_token": token_hash, "password_reset_expires": expires},
    )

    reset_url = f"{str(request.base_url).rstrip('/')}/api/v1/users/resetPassword/{reset_token}"
    message = (
        f"Forgot your password? Submit a PATCH request with your new password and "
        f"password_confirm to: {reset_url}.\n"
        f"If you didn't forget your password, please ignore this email!"
    )

    try:
        await mailer.send_email(
            email=user["email"],
            subject=f"Your password reset token (valid for {settings.PASSWORD_RESET_EXPIRES_MINUTES} min)",
            message=message,
        )
    except Exception as e:
        logger.error("Failed to send password reset email to %s: %s", user["email"], e)
        User.set_fields(user["_id"], unset=("password_reset_token", "password_reset_expires"))
        raise AppError("There was an error sending the email. Try again later!", 500)

    return {"status": "success", "message": "Token sent to email!"}


def reset_password(token: str, payload: ResetPasswordRequest):
    user = User.find_one(
        {
            "password_reset_token": hash_reset_token(token),
            "password_reset_expires": {"$gt": utcnow()},
        }
    )
    if user is None:
        raise AppError("Token is invalid or has expired.", 400)

    User.set_password(user["_id"], payload.password)
    logger.info("Password reset for user %s", user["_id"])
    return send_token(User.find_by_id(user["_id"]))


def update_password(
    payload: UpdatePasswordRequest,
    current_user: Dict[str, Any] = Depends(protect),
):
    user = User.find_by_id(current_user["_id"], include_hidden=True)
    if user is None or not verify_password(payload.password_current, user.get("password", "")):
        raise AppError("Your current password is wrong.", 401)

    User.set_password(user["_id"], payload.password)
    return send_token(User.find_by_id(user["_id"]))
