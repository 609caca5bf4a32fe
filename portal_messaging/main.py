# portal_messaging/main.py
from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from portal_messaging.api.middlewares.error_handler import register_error_handlers
from portal_messaging.api.realtime.socket_handlers import register_socket_handlers
from portal_messaging.api.routes import register_routes
from portal_messaging.config.flask_config import configure_app
from portal_messaging.config.logging_config import configure_logging
from portal_messaging.config.settings import settings
from portal_messaging.infrastructure.realtime.socketio_server import socketio

import portal_messaging.infrastructure.database.models  # noqa: F401


def create_app() -> Flask:
    configure_logging()

    app_prefix = settings.app_prefix.rstrip("/")
    api_prefix = settings.api_prefix

    app = Flask(__name__)

    # ✅ CORS aplicado cedo (antes das rotas lidarem com OPTIONS)
    CORS(
        app,
        resources={rf"{api_prefix}/*": {"origins": settings.cors_origins}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    configure_app(app)

    register_routes(app, api_prefix=api_prefix, app_prefix=app_prefix)

    register_error_handlers(app)

    # ✅ Socket.IO no subpath
    socketio.init_app(
        app,
        path=f"{app_prefix}/socket.io",
        cors_allowed_origins=settings.cors_origins,
        async_mode=settings.socketio_async_mode,
    )
    register_socket_handlers()

    return app
