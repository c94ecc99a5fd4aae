"""
Serverless entry point. If the application fails to import, serve the
startup error as a JSON 500 so the deployment log is not the only trace.
"""
import json
import sys
import logging
import traceback

logger = logging.getLogger(__name__)

startup_error = None

try:
    from plantdoc.main import app
except Exception as e:
    logger.error(f"PlantDoc failed to start: {e}", exc_info=True)
    startup_error = {
        "service": "PlantDoc",
        "error": str(e),
        "type": type(e).__name__,
        "traceback": traceback.format_exc(),
        "python_version": sys.version,
    }

    async def app(scope, receive, send):
        if scope["type"] != "http":
            return
        body = json.dumps(startup_error, ensure_ascii=False).encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": 500,
            "headers": [[b"content-type", b"application/json; charset=utf-8"]],
        })
        await send({"type": "http.response.body", "body": body})
