"""HTTP endpoint speaking the RSVP action protocol."""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from rsvp.config import AppConfig, configure_logging, ensure_directories, load_config
from rsvp.services.registration_service import RegistrationService
from rsvp.services.request_handler import RequestHandler

logger = logging.getLogger(__name__)


async def _read_body(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or load_config()
    configure_logging(config.log_level)
    ensure_directories(config)

    handler = RequestHandler(RegistrationService(config))
    app = FastAPI(title="Event RSVP")
    app.state.handler = handler

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/")
    async def dispatch(request: Request):
        fields = await _read_body(request)
        action = fields.pop("action", None)
        # handle() blocks while it waits for the file lock
        status, payload = await run_in_threadpool(handler.handle, action, fields)
        return JSONResponse(payload, status_code=status)

    logger.info("RSVP API ready, guest file %s", config.guests_path)
    return app
