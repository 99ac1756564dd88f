"""
This module holds the constants that define how the streamer talks to a
rosbridge server: operation names, ROS type strings and message conventions.
"""

# ---------------------------
# rosbridge Protocol Operations
# ---------------------------
OP_ADVERTISE = "advertise"
OP_UNADVERTISE = "unadvertise"
OP_PUBLISH = "publish"
OP_STATUS = "status"        # Sent by the server to report errors/warnings

# ---------------------------
# ROS Message Types
# ---------------------------
# The same strings are advertised for ROS1 and ROS2 bodies; rosbridge on ROS2
# accepts the short "pkg/Type" form.
IMU_MSG_TYPE = "sensor_msgs/Imu"
TRANSFORM_MSG_TYPE = "geometry_msgs/Transform"

# ---------------------------
# Message Conventions
# ---------------------------

# Covariance is reported as "unknown" (all zeros) for every IMU field
UNKNOWN_COVARIANCE = (0.0,) * 9

# Sub-second part of stamps, for both schema families
NSEC_PER_SEC = 1_000_000_000

# ---------------------------
# WebSocket Schemes
# ---------------------------
WEBSOCKET_SCHEMES = ("ws", "wss")
