"""
This module holds all the setup options for the Motion Streamer app
kind of like a control panel where you can change settings without messing with the main
"""

# Flask Configuration
SECRET_KEY = 'your-secret-key'  # Override with MOTION_STREAMER_SECRET_KEY in production
FLASK_HOST = "0.0.0.0"
FLASK_PORT = 8080
FLASK_DEBUG = False

# Logging
LOG_LEVEL = "INFO"

# rosbridge Connection Configuration
DEFAULT_ROSBRIDGE_URL = "ws://10.0.0.5:9090"  # rosbridge_server default port is 9090
HEALTH_CHECK_PERIOD_S = 5.0                   # Dead connections are replaced at this period
STUCK_CONNECTING_CHECKS = 3                   # Health checks allowed in "connecting" before retrying
SHUTDOWN_FLUSH_TIMEOUT_S = 2.0                # Max wait for unadvertise frames on shutdown

# Message Options
EXCLUDE_GRAVITY = False     # False: linear_acceleration includes gravity (specific force)
USE_ROS2 = False            # False: ROS1 message layout (header.seq, stamp.nsec)

# Sample sources and the topics they publish to
SOURCE_PHONE = "phone"
SOURCE_HEADPHONE = "headphone"
SOURCE_FACE = "face"

DEFAULT_TOPICS = {
    SOURCE_PHONE: {"name": "/phone_imu", "frame_id": "phone", "kind": "IMU"},
    SOURCE_HEADPHONE: {"name": "/headphone_imu", "frame_id": "headphone", "kind": "IMU"},
    SOURCE_FACE: {"name": "/face_transform", "frame_id": "", "kind": "TRANSFORM"},  # Transform has no header
}
