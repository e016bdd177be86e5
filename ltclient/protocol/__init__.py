"""Wire protocol: the message model and the `[id,command,payload]` frame codec."""

from ltclient.protocol.codec import decode, encode, encode_object, split_frame
from ltclient.protocol.message import Message, MetaRange, Payload, Position

__all__ = [
    "Message",
    "MetaRange",
    "Payload",
    "Position",
    "decode",
    "encode",
    "encode_object",
    "split_frame",
]
