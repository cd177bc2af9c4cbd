"""
Authentication blueprint (mounted under /api/v1/users):
- POST /register         multipart: fullName, email, username, password, avatar, coverImage
- POST /login
- POST /logout
- POST /refresh-token
- POST /change-password
- GET  /current-user

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs, HS256)
- Keeps the current refresh token on the user row so it can be rotated and revoked
- Delivers tokens both in the body and as http-only cookies
"""
from __future__ import annotations

import asyncio

from flask import Blueprint, request, g

from api.extensions import get_services
from api.responses import api_response
from models.schemas.user import UserRegisterSchema, UserLoginSchema, ChangePasswordSchema
from utils.decorators import jwt_required
from utils.uploads import stage_upload

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _payload() -> dict:
    if request.form:
        return request.form.to_dict()
    return request.get_json(silent=True) or {}


def _set_token_cookies(response, access_token: str, refresh_token: str):
    secure = get_services().settings.cookie_secure
    response.set_cookie(ACCESS_COOKIE, access_token, httponly=True, secure=secure)
    response.set_cookie(REFRESH_COOKIE, refresh_token, httponly=True, secure=secure)
    return response


def _clear_token_cookies(response):
    secure = get_services().settings.cookie_secure
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=secure)
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=secure)
    return response


@bp.post("/register")
async def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file }
    responses:
      201:
        description: Created
      400:
        description: Missing field or avatar
      409:
        description: Username or email already registered
    """
    services = get_services()
    data = user_register_schema.load(_payload())
    temp_dir = services.settings.upload_temp_dir
    avatar_path = await asyncio.to_thread(stage_upload, request.files.get("avatar"), temp_dir)
    cover_path = await asyncio.to_thread(stage_upload, request.files.get("coverImage"), temp_dir)

    user = await services.sessions.register(
        data["full_name"],
        data["email"],
        data["username"],
        data["password"],
        avatar_path=avatar_path,
        cover_path=cover_path,
    )
    return api_response(user, "User registered successfully", 201)


@bp.post("/login")
async def login():
    """
    Login: returns the user plus access and refresh tokens (also set as cookies)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Neither username nor email given
      401:
        description: Wrong password
      404:
        description: No such user
    """
    data = user_login_schema.load(_payload())
    result = await get_services().sessions.login(
        data["password"], username=data["username"], email=data["email"]
    )
    response, status = api_response(result, "User logged in successfully")
    _set_token_cookies(response, result["accessToken"], result["refreshToken"])
    return response, status


@bp.post("/logout")
@jwt_required()
async def logout():
    """
    Logout: forgets the stored refresh token and clears the token cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    await get_services().sessions.logout(g.current_user.id)
    response, status = api_response({}, "User logged out successfully")
    _clear_token_cookies(response)
    return response, status


@bp.post("/refresh-token")
async def refresh_token():
    """
    Rotate tokens: trade the current refresh token for a new pair
    Token is read from the refreshToken cookie or the body.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: New tokens
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    incoming = request.cookies.get(REFRESH_COOKIE) or _payload().get("refreshToken")
    result = await get_services().sessions.refresh(incoming)
    response, status = api_response(result, "Access token refreshed")
    _set_token_cookies(response, result["accessToken"], result["refreshToken"])
    return response, status


@bp.post("/change-password")
@jwt_required()
async def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Old password does not match
    """
    data = change_password_schema.load(_payload())
    await get_services().sessions.change_password(
        g.current_user.id, data["old_password"], data["new_password"]
    )
    return api_response({}, "Password changed successfully")


@bp.get("/current-user")
@jwt_required()
async def current_user():
    """
    Get the authenticated user's profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(get_services().sessions.current_user(g.current_user), "Current user fetched successfully")
