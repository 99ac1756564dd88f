"""
ROS message bodies and the mapping from sensor samples to them.

Two schema families exist. ROS1 stamps are {"sec", "nsec"} and headers carry
a "seq" field; ROS2 stamps are {"sec", "nanosec"} and headers have no "seq".
Both families express the sub-second part in nanoseconds.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple, Union

from .constants import NSEC_PER_SEC, UNKNOWN_COVARIANCE
from .geometry import split_transform


# ---------------------------
# Geometry Messages
# ---------------------------

@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)


@dataclass(frozen=True)
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


# ---------------------------
# Time & Header
# ---------------------------

@dataclass(frozen=True)
class Ros1Time:
    sec: int = 0
    nsec: int = 0


@dataclass(frozen=True)
class Ros2Time:
    """Field names follow builtin_interfaces/Time, whose sub-second part is ``nanosec``."""
    sec: int = 0
    nanosec: int = 0


@dataclass(frozen=True)
class Ros1Header:
    seq: int = 0
    stamp: Ros1Time = field(default_factory=Ros1Time)
    frame_id: str = ""


@dataclass(frozen=True)
class Ros2Header:
    stamp: Ros2Time = field(default_factory=Ros2Time)
    frame_id: str = ""


def split_seconds(timestamp: float) -> Tuple[int, int]:
    """
    Split floating-point seconds into whole seconds and nanoseconds.

    Args:
        timestamp: Seconds, e.g. since the epoch

    Returns:
        (sec, nsec) with 0 <= nsec < NSEC_PER_SEC

    Raises:
        ValueError: If the timestamp is NaN or infinite
    """
    if not math.isfinite(timestamp):
        raise ValueError(f"Timestamp must be finite, got {timestamp!r}")
    sec = math.floor(timestamp)
    nsec = int((timestamp - sec) * NSEC_PER_SEC)
    return sec, min(nsec, NSEC_PER_SEC - 1)


def ros1_time(timestamp: float) -> Ros1Time:
    sec, nsec = split_seconds(timestamp)
    return Ros1Time(sec=sec, nsec=nsec)


def ros2_time(timestamp: float) -> Ros2Time:
    sec, nsec = split_seconds(timestamp)
    return Ros2Time(sec=sec, nanosec=nsec)


# ---------------------------
# sensor_msgs/Imu
# ---------------------------

@dataclass(frozen=True)
class Ros1Imu:
    header: Ros1Header
    orientation: Quaternion = field(default_factory=Quaternion)
    orientation_covariance: Tuple[float, ...] = UNKNOWN_COVARIANCE
    angular_velocity: Vector3 = field(default_factory=Vector3)
    angular_velocity_covariance: Tuple[float, ...] = UNKNOWN_COVARIANCE
    linear_acceleration: Vector3 = field(default_factory=Vector3)
    linear_acceleration_covariance: Tuple[float, ...] = UNKNOWN_COVARIANCE


@dataclass(frozen=True)
class Ros2Imu:
    header: Ros2Header
    orientation: Quaternion = field(default_factory=Quaternion)
    orientation_covariance: Tuple[float, ...] = UNKNOWN_COVARIANCE
    angular_velocity: Vector3 = field(default_factory=Vector3)
    angular_velocity_covariance: Tuple[float, ...] = UNKNOWN_COVARIANCE
    linear_acceleration: Vector3 = field(default_factory=Vector3)
    linear_acceleration_covariance: Tuple[float, ...] = UNKNOWN_COVARIANCE


# ---------------------------
# geometry_msgs/Transform
# ---------------------------

@dataclass(frozen=True)
class Ros1Transform:
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)


@dataclass(frozen=True)
class Ros2Transform:
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)


RosMessage = Union[Ros1Imu, Ros2Imu, Ros1Transform, Ros2Transform]


# ---------------------------
# Sensor Samples
# ---------------------------

@dataclass(frozen=True)
class MotionSample:
    """One device-motion reading (phone or headphones)."""
    timestamp: float
    orientation: Quaternion = field(default_factory=Quaternion)
    angular_velocity: Vector3 = field(default_factory=Vector3)
    user_acceleration: Vector3 = field(default_factory=Vector3)
    gravity: Vector3 = field(default_factory=Vector3)


@dataclass(frozen=True)
class PoseSample:
    """One tracked pose as a 4x4 homogeneous transform, transform[row][col]."""
    timestamp: float
    transform: Sequence[Sequence[float]]


Sample = Union[MotionSample, PoseSample]


# ---------------------------
# Sample -> Message Mapping
# ---------------------------

def linear_acceleration(sample: MotionSample, exclude_gravity: bool = False) -> Vector3:
    """Specific force by default; user acceleration alone when gravity is excluded."""
    if exclude_gravity:
        return sample.user_acceleration
    return sample.user_acceleration + sample.gravity


def build_imu(
    sample: MotionSample,
    frame_id: str,
    exclude_gravity: bool = False,
    use_ros2: bool = False
) -> Union[Ros1Imu, Ros2Imu]:
    """
    Build a sensor_msgs/Imu body from a motion sample.

    Args:
        sample: Motion reading to convert
        frame_id: Frame the reading is expressed in
        exclude_gravity: Report user acceleration only
        use_ros2: Build the ROS2 layout instead of ROS1

    Returns:
        Ros2Imu if use_ros2, otherwise Ros1Imu
    """
    acceleration = linear_acceleration(sample, exclude_gravity)
    if use_ros2:
        return Ros2Imu(
            header=Ros2Header(stamp=ros2_time(sample.timestamp), frame_id=frame_id),
            orientation=sample.orientation,
            angular_velocity=sample.angular_velocity,
            linear_acceleration=acceleration,
        )
    return Ros1Imu(
        header=Ros1Header(stamp=ros1_time(sample.timestamp), frame_id=frame_id),
        orientation=sample.orientation,
        angular_velocity=sample.angular_velocity,
        linear_acceleration=acceleration,
    )


def build_transform(sample: PoseSample, use_ros2: bool = False) -> Union[Ros1Transform, Ros2Transform]:
    """
    Build a geometry_msgs/Transform body from a pose sample.

    Raises:
        ValueError: If the transform is not 4x4 or its rotation is degenerate
    """
    translation, rotation = split_transform(sample.transform)
    vector = Vector3(*(float(v) for v in translation))
    quaternion = Quaternion(*(float(v) for v in rotation))
    if use_ros2:
        return Ros2Transform(translation=vector, rotation=quaternion)
    return Ros1Transform(translation=vector, rotation=quaternion)
