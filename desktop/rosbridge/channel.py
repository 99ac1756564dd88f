"""
Per-topic publishing.

A TopicChannel knows one ROS topic's name, frame id and message type. It
turns samples into publish frames and re-advertises itself whenever its name
changes or the streamer reconnects.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable

from .constants import IMU_MSG_TYPE, TRANSFORM_MSG_TYPE
from .errors import EncodeError
from .messages import MotionSample, PoseSample, RosMessage, Sample, build_imu, build_transform
from .protocol import (
    AdvertiseRequest,
    PublishRequest,
    RosbridgeRequest,
    UnadvertiseRequest,
    encode
)

logger = logging.getLogger(__name__)


class MessageKind(enum.Enum):
    """Message published on a channel; the value is the advertised ROS type."""
    IMU = IMU_MSG_TYPE
    TRANSFORM = TRANSFORM_MSG_TYPE


@dataclass
class StreamConfig:
    """Options shared by all channels, read each time a message is built."""
    exclude_gravity: bool = False
    use_ros2: bool = False


@dataclass
class TopicSpec:
    name: str
    frame_id: str = ""


class TopicChannel:
    """
    One ROS topic fed by one sample source.

    Frames are handed to ``send`` (usually ``ConnectionSupervisor.send``),
    which drops them when no connection is up.
    """

    def __init__(
        self,
        spec: TopicSpec,
        kind: MessageKind,
        send: Callable[[bytes], None],
        config: StreamConfig
    ):
        self.spec = spec
        self.kind = kind
        self.config = config
        self._send = send

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def frame_id(self) -> str:
        return self.spec.frame_id

    @property
    def msg_type(self) -> str:
        return self.kind.value

    def set_name(self, name: str) -> None:
        """
        Rename the topic and advertise the new name.

        The previous name is not unadvertised and may stay advertised on the
        server until the connection drops.
        """
        if name == self.spec.name:
            return
        self.spec.name = name
        self.advertise()

    def set_frame_id(self, frame_id: str) -> None:
        self.spec.frame_id = frame_id

    def advertise(self) -> None:
        self._send_request(AdvertiseRequest(topic=self.spec.name, type=self.msg_type))

    def unadvertise(self) -> None:
        self._send_request(UnadvertiseRequest(topic=self.spec.name))

    def publish_sample(self, sample: Sample) -> None:
        """Map a sample to this channel's message type and publish it."""
        try:
            msg = self.build_message(sample)
        except ValueError as e:
            logger.warning("Dropping sample for %s: %s", self.spec.name, e)
            return
        self._send_request(PublishRequest(topic=self.spec.name, msg=msg))

    def build_message(self, sample: Sample) -> RosMessage:
        """
        Build the message body for ``sample`` using the current options.

        Raises:
            ValueError: If the sample does not match this channel's kind or
                cannot be converted
        """
        if self.kind is MessageKind.IMU:
            if not isinstance(sample, MotionSample):
                raise ValueError(f"IMU channel expects a MotionSample, got {type(sample).__name__}")
            return build_imu(
                sample,
                self.spec.frame_id,
                exclude_gravity=self.config.exclude_gravity,
                use_ros2=self.config.use_ros2,
            )
        if not isinstance(sample, PoseSample):
            raise ValueError(f"Transform channel expects a PoseSample, got {type(sample).__name__}")
        return build_transform(sample, use_ros2=self.config.use_ros2)

    def _send_request(self, request: RosbridgeRequest) -> None:
        if not request.topic:
            logger.debug("Skipping %s, topic name is empty", request.op)
            return
        try:
            frame = encode(request)
        except EncodeError as e:
            logger.warning("Dropping %s on %s: %s", request.op, request.topic, e)
            return
        self._send(frame)
