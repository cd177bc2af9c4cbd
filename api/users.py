from __future__ import annotations

import asyncio

from flask import Blueprint, request, g

from api.extensions import get_services
from api.responses import api_response
from models.schemas.user import UserUpdateSchema
from utils.decorators import jwt_required
from utils.uploads import stage_upload

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()


async def _staged_file(field: str):
    return await asyncio.to_thread(
        stage_upload, request.files.get(field), get_services().settings.upload_temp_dir
    )


@bp.patch("/update-account")
@jwt_required()
async def update_account():
    """
    Update fullName and/or email of the current user
    ---
    tags:
      - Users
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
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: Updated profile }
      400: { description: Neither field given }
      409: { description: Email already in use }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = await get_services().profiles.update_account_details(
        g.current_user.id, full_name=data.get("full_name"), email=data.get("email")
    )
    return api_response(user, "Account details updated successfully")


@bp.patch("/avatar")
@jwt_required()
async def update_avatar():
    """
    Replace the current user's avatar (old image is deleted from the media store)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: Updated profile }
      400: { description: Missing file or media store failure }
    """
    user = await get_services().profiles.update_avatar(g.current_user.id, await _staged_file("avatar"))
    return api_response(user, "Avatar updated successfully")


@bp.patch("/cover-image")
@jwt_required()
async def update_cover_image():
    """
    Replace the current user's cover image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: Updated profile }
      400: { description: Missing file or upload failure }
    """
    user = await get_services().profiles.update_cover_image(g.current_user.id, await _staged_file("coverImage"))
    return api_response(user, "Cover image updated successfully")


@bp.get("/c/<username>")
@jwt_required(optional=True)
async def channel_profile(username: str):
    """
    Channel profile with subscriber counts
    Anonymous viewers get isSubscribed=false.
    ---
    tags:
      - Channels
    parameters:
      - in: path
        name: username
        type: string
        required: true
    responses:
      200: { description: Channel profile }
      404: { description: No such channel }
    """
    viewer = g.current_user
    channel = await get_services().graph.get_channel_profile(username, viewer.id if viewer else None)
    return api_response(channel, "User channel fetched successfully")


@bp.get("/history")
@jwt_required()
async def watch_history():
    """
    Watch history of the current user, in watch order, with each video's owner
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: List of videos }
      401: { description: Unauthorized }
    """
    videos = await get_services().graph.get_watch_history(g.current_user.id)
    return api_response(videos, "Watch history fetched successfully")
