from flask import Blueprint, send_from_directory

from api.extensions import get_services

bp = Blueprint("media", __name__)


@bp.get("/media/<path:name>")
def media(name: str):
    """
    Serve an object of the local media store
    ---
    tags:
      - Media
    parameters:
      - in: path
        name: name
        type: string
        required: true
    responses:
      200: { description: File content }
      404: { description: Not found }
    """
    return send_from_directory(get_services().settings.media_root, name)
