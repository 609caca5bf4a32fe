# portal_messaging/wsgi.py
import eventlet

# ✅ PRECISA ser o primeiro comando do arquivo
eventlet.monkey_patch()

from portal_messaging.infrastructure.realtime.socketio_server import socketio  # noqa: E402
from portal_messaging.main import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    # em produção: gunicorn -k eventlet -w 1 portal_messaging.wsgi:app
    socketio.run(app, host="0.0.0.0", port=5000)
