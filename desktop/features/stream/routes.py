"""
Streaming status routes.

This module contains HTTP routes for inspecting the rosbridge streamer.
"""

from flask import current_app, jsonify
from . import stream_bp


@stream_bp.route("/status")
def status():
    """
    Current connection state, topics and message options.

    Returns:
        JSON status of the streamer
    """
    streamer = current_app.extensions["rosbridge_streamer"]
    return jsonify(streamer.status())
