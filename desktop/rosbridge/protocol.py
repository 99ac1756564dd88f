"""
rosbridge protocol utilities.

This module contains the request types understood by a rosbridge server and
the function that encodes them into JSON frames ready to send over WebSocket.
"""

import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from .constants import OP_ADVERTISE, OP_PUBLISH, OP_UNADVERTISE
from .errors import EncodeError


@dataclass(frozen=True)
class AdvertiseRequest:
    """Declares that this client will publish ``type`` messages on ``topic``."""
    topic: str
    type: str
    op: str = dataclasses.field(default=OP_ADVERTISE, init=False)


@dataclass(frozen=True)
class UnadvertiseRequest:
    """Retracts an earlier advertisement of ``topic``."""
    topic: str
    op: str = dataclasses.field(default=OP_UNADVERTISE, init=False)


@dataclass(frozen=True)
class PublishRequest:
    """Sends one message body on ``topic``."""
    topic: str
    msg: Any
    op: str = dataclasses.field(default=OP_PUBLISH, init=False)


RosbridgeRequest = Union[AdvertiseRequest, UnadvertiseRequest, PublishRequest]


def request_to_dict(request: RosbridgeRequest) -> Dict[str, Any]:
    """
    Convert a request into the plain dictionary sent on the wire.

    ``op`` always comes first; the remaining fields keep their declaration
    order, so each request and message type has a stable key order.

    Args:
        request: Request to convert

    Returns:
        Dictionary with the rosbridge field names
    """
    body = {"op": request.op}
    for field in dataclasses.fields(request):
        if field.name == "op":
            continue
        value = getattr(request, field.name)
        if dataclasses.is_dataclass(value):
            value = dataclasses.asdict(value)
        body[field.name] = value
    return body


def encode(request: RosbridgeRequest) -> bytes:
    """
    Encode a rosbridge request as a canonical JSON frame.

    The output uses compact separators and keeps "/" unescaped, so type
    strings such as "sensor_msgs/Imu" appear literally.

    Args:
        request: Advertise, unadvertise or publish request

    Returns:
        UTF-8 encoded JSON bytes

    Raises:
        EncodeError: If the request holds NaN/Inf values or cannot be serialized
    """
    try:
        body = request_to_dict(request)
        text = json.dumps(body, allow_nan=False, ensure_ascii=False, separators=(",", ":"))
    except (AttributeError, TypeError, ValueError) as e:
        raise EncodeError(f"Cannot encode {type(request).__name__}: {e}") from e
    return text.encode("utf-8")
