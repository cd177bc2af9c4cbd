from flask import Blueprint
from sqlalchemy.exc import SQLAlchemyError

from api.extensions import get_services

bp = Blueprint("health", __name__)


@bp.get("/health")
async def health():
    """
    Liveness and database reachability
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            database:
              type: string
              example: ok
      503:
        description: Database unreachable
    """
    try:
        await get_services().storage.ping()
    except SQLAlchemyError:
        return {"status": "degraded", "database": "unreachable"}, 503
    return {"status": "ok", "database": "ok"}, 200
