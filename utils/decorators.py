from __future__ import annotations
from functools import wraps
from flask import request, g
from api.extensions import get_services
from models.user import User
from utils.exceptions import Unauthorized


def _access_token_from_request() -> str | None:
    token = request.cookies.get("accessToken")
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required(optional: bool = False):
    """
    Authenticate the request with an access token from the ``accessToken``
    cookie or an ``Authorization: Bearer`` header and put the user on
    ``g.current_user``.

    With ``optional=True`` a request without a token goes through anonymously
    (``g.current_user`` is None); a token that is present but bad still fails.
    """
    def decorator(fn):
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            g.current_user = None
            token = _access_token_from_request()
            if not token:
                if optional:
                    return await fn(*args, **kwargs)
                raise Unauthorized("Unauthorized request")

            services = get_services()
            decoded = services.tokens.verify_access(token)
            user = await services.storage.get(User, decoded.get("_id"))
            if not user:
                raise Unauthorized("Invalid access token")
            g.current_user = user
            return await fn(*args, **kwargs)

        return wrapper

    return decorator
