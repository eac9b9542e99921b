from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from logging.handlers import RotatingFileHandler

from meeting_actions.config import Settings
from meeting_actions.errors import install_error_handlers
from meeting_actions.models.base import init_db
from meeting_actions.api.meetings import router as meetings_router


settings = Settings()


def configure_logging(cfg: Settings) -> None:
    formatter = logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s")
    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        root.addHandler(stream)
    try:
        log_file = cfg.logs_dir / "backend.log"
        if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
            handler = RotatingFileHandler(str(log_file), maxBytes=5_000_000, backupCount=2)
            handler.setFormatter(formatter)
            root.addHandler(handler)
    except OSError:
        logging.getLogger("meeting_actions").warning("File logging disabled; cannot write to %s", cfg.logs_dir)
    root.setLevel(cfg.log_level.upper())


def create_app() -> FastAPI:
    app = FastAPI(title="Meeting Actions Backend", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        settings.ensure_dirs()
        configure_logging(settings)
        init_db()

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(meetings_router)
    install_error_handlers(app)

    return app


app = create_app()


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Meeting Actions Backend Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (dev only)")

    args = parser.parse_args()

    uvicorn.run(
        "meeting_actions.main:app" if args.reload else app,
        host=args.host,
        port=args.port,
        reload=args.reload
    )
