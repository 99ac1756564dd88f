"""
This file is basically the starting point for the Flask app
It sets things up, creates the rosbridge streamer, and hooks up all the routes and features.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_socketio import SocketIO

from config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, LOG_LEVEL, SECRET_KEY
from rosbridge import RosbridgeStreamer

# Initialize SocketIO (will be initialized with app later)
socketio = SocketIO(cors_allowed_origins="*")


def create_app(streamer: Optional[RosbridgeStreamer] = None) -> Flask:
    """
    Create and configure Flask application.

    This function:
    1. Creates Flask app
    2. Initializes SocketIO
    3. Attaches the rosbridge streamer
    4. Registers all features/routes
    5. Sets up error handlers

    Args:
        streamer: Streamer to expose; a new one bound to ``socketio`` if omitted

    Returns:
        Configured Flask application instance
    """
    # 1. Create Flask app
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.environ.get("MOTION_STREAMER_SECRET_KEY", SECRET_KEY)

    # 2. Initialize SocketIO with the app
    socketio.init_app(app)

    # 3. Attach the streamer so routes and handlers can reach it
    if streamer is None:
        streamer = RosbridgeStreamer(socketio_instance=socketio)
    app.extensions["rosbridge_streamer"] = streamer

    # 4. Register all features/routes
    register_features(app, streamer)

    # 5. Set up error handlers
    register_error_handlers(app)

    return app


def register_features(app: Flask, streamer: RosbridgeStreamer) -> None:
    """
    Register all feature blueprints and socket handlers with the app.

    Args:
        app: Flask application instance
        streamer: Streamer used by the socket handlers
    """
    from features.stream import stream_bp
    from features.stream.socket_handlers import register_socket_handlers

    app.register_blueprint(stream_bp)
    register_socket_handlers(socketio, streamer)


def register_error_handlers(app: Flask) -> None:
    """
    Register error handlers for the app.

    Args:
        app: Flask application instance
    """
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"error": "internal server error"}), 500


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    streamer = app.extensions["rosbridge_streamer"]

    # Single streamer instance (avoid Flask reloader duplicates)
    streamer.start()
    try:
        socketio.run(app, host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG, use_reloader=False)
    finally:
        streamer.stop()


# Export socketio so other modules can use it
__all__ = ['create_app', 'socketio', 'main']


if __name__ == "__main__":
    main()
