# portal_messaging/infrastructure/realtime/socketio_server.py
from __future__ import annotations

from flask_socketio import SocketIO

# origens, async_mode e path chegam no init_app (main.create_app)
socketio = SocketIO()
