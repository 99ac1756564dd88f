"""
Motion streaming feature module.

This module provides the rosbridge streaming controls: endpoint and topic
configuration, sample ingestion from the browser, and status reporting.
"""

from flask import Blueprint

# Create blueprint for streaming feature
stream_bp = Blueprint('stream', __name__, url_prefix='/stream')

# Import routes
from . import routes
