# portal_messaging/config/flask_config.py
from flask import Flask

from portal_messaging.config.settings import settings


def configure_app(app: Flask) -> None:
    app.config["ENV"] = settings.environment
    app.config["DEBUG"] = settings.debug
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    # multipart com anexo de até max_attachment_size_mb (+ folga para os campos do form)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_attachment_bytes + 1024 * 1024
