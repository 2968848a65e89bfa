"""
Production WSGI Entry Point
Used by gunicorn and other WSGI servers
"""
import os
from classengage import create_app
from classengage.extensions import socketio

app = create_app()

if __name__ == '__main__':
    # In production, use: gunicorn --worker-class eventlet -w 1 wsgi:app
    port = int(os.getenv('PORT', 5000))

    socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=app.config.get('DEBUG', False),
        use_reloader=False
    )
