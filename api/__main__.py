"""
Development server: python -m api
Production deployments serve create_app() from a WSGI server instead.
"""
import os
from . import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("PORT") or os.getenv("FLASK_RUN_PORT", "8000"))
    debug = os.getenv("FLASK_DEBUG", str(app.config["DEBUG"])).lower() in ("1", "true", "yes")
    app.logger.info("Serving media from %s", app.config["MEDIA_ROOT"])
    app.run(host=host, port=port, debug=debug)
