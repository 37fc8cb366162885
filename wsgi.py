"""WSGI entry point for gunicorn (``gunicorn -k eventlet -w 1 wsgi:app``)."""
import os
from wordwrangler import create_app
from wordwrangler.extensions import socketio

app = create_app()

if __name__ == "__main__":
    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=app.config.get("DEBUG", False),
    )
