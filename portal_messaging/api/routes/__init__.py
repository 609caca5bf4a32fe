# portal_messaging/api/routes/__init__.py

from flask import Flask

from portal_messaging.api.routes.conversation_routes import bp_conv
from portal_messaging.api.routes.file_routes import bp_files
from portal_messaging.api.routes.health_routes import bp_health
from portal_messaging.api.routes.message_routes import bp_msg


def register_routes(app: Flask, *, api_prefix: str, app_prefix: str) -> None:
    # health fora de /api (mas dentro do app)
    app.register_blueprint(bp_health, url_prefix=f"{app_prefix}/health")
    app.register_blueprint(bp_health, url_prefix=f"{api_prefix}/health", name="api_health")

    app.register_blueprint(bp_conv, url_prefix=f"{api_prefix}/conversations")
    app.register_blueprint(bp_msg, url_prefix=f"{api_prefix}/messages")
    app.register_blueprint(bp_files, url_prefix=f"{api_prefix}/files")
