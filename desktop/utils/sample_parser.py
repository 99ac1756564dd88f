"""
Converts sample payloads sent by the browser into typed sensor samples.
"""

import math
import time
from typing import Any, Dict, Optional

from rosbridge.messages import MotionSample, PoseSample, Quaternion, Vector3


class SampleParser:
    """
    Converts SocketIO event payloads to MotionSample / PoseSample objects.
    """

    @staticmethod
    def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
        value = data.get(key, default)
        if value is None:
            raise ValueError(f"Missing field {key!r}")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Field {key!r} must be a number, got {value!r}")
        return float(value)

    @staticmethod
    def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
        section = data.get(key, {})
        if not isinstance(section, dict):
            raise ValueError(f"Field {key!r} must be an object")
        return section

    @staticmethod
    def timestamp(data: Dict[str, Any]) -> float:
        """Sample time in seconds since the epoch; the receive time if absent."""
        if data.get("timestamp") is None:
            return time.time()
        value = SampleParser._number(data, "timestamp")
        if not math.isfinite(value):
            raise ValueError(f"Timestamp must be finite, got {value!r}")
        return value

    @staticmethod
    def vector3(data: Dict[str, Any], key: str) -> Vector3:
        section = SampleParser._section(data, key)
        return Vector3(
            x=SampleParser._number(section, "x", 0.0),
            y=SampleParser._number(section, "y", 0.0),
            z=SampleParser._number(section, "z", 0.0),
        )

    @staticmethod
    def quaternion(data: Dict[str, Any], key: str) -> Quaternion:
        """Missing components default to the identity rotation (0, 0, 0, 1)."""
        section = SampleParser._section(data, key)
        return Quaternion(
            x=SampleParser._number(section, "x", 0.0),
            y=SampleParser._number(section, "y", 0.0),
            z=SampleParser._number(section, "z", 0.0),
            w=SampleParser._number(section, "w", 1.0),
        )

    @staticmethod
    def motion_from_payload(data: Dict[str, Any]) -> MotionSample:
        """
        Convert a motion event payload to a MotionSample.

        Args:
            data: Dictionary with optional "timestamp" (seconds) and the
                objects "orientation" {x, y, z, w}, "angular_velocity",
                "user_acceleration" and "gravity" {x, y, z}

        Returns:
            Parsed motion sample

        Raises:
            ValueError: If the payload is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Motion payload must be an object")
        return MotionSample(
            timestamp=SampleParser.timestamp(data),
            orientation=SampleParser.quaternion(data, "orientation"),
            angular_velocity=SampleParser.vector3(data, "angular_velocity"),
            user_acceleration=SampleParser.vector3(data, "user_acceleration"),
            gravity=SampleParser.vector3(data, "gravity"),
        )

    @staticmethod
    def pose_from_payload(data: Dict[str, Any]) -> PoseSample:
        """
        Convert a pose event payload to a PoseSample.

        Args:
            data: Dictionary with optional "timestamp" (seconds) and
                "transform", a 4x4 list of rows

        Returns:
            Parsed pose sample

        Raises:
            ValueError: If the payload is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Pose payload must be an object")
        rows = data.get("transform")
        if not isinstance(rows, list) or len(rows) != 4:
            raise ValueError("Field 'transform' must be a list of 4 rows")

        transform = []
        for row in rows:
            if not isinstance(row, list) or len(row) != 4:
                raise ValueError("Each transform row must hold 4 numbers")
            transform.append(tuple(SampleParser._number({"v": v}, "v") for v in row))

        return PoseSample(timestamp=SampleParser.timestamp(data), transform=tuple(transform))
