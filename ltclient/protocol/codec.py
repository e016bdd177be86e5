from __future__ import annotations

"""
Frame codec for the editor protocol.

A frame is one line holding a three element JSON array:

    [<integer id>,"<command>",{<payload>}]

Each element is parsed on its own so a failure can name the field that broke.
The splitter honours string quoting and bracket nesting, and stops after the
second top-level comma: everything after it is the payload segment.
"""

import json
from typing import List

from ltclient.errors import DecodeError, EncodeError, FieldParseError, MalformedFrameError
from ltclient.protocol.message import Message, Payload, _expect_int, _expect_str

FIELD_COUNT = 3
FIELD_NAMES = ("id", "command", "payload")

_OPENERS = "[{"
_CLOSERS = "]}"


def split_frame(body: str, count: int = FIELD_COUNT) -> List[str]:
    """Split `body` on top-level commas into at most `count` segments.

    Commas inside strings, arrays or objects do not split. Unbalanced
    brackets are left for the JSON parser to reject.
    """
    parts: List[str] = []
    depth = 0
    in_string = False
    escaped = False
    start = 0
    for i, ch in enumerate(body):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
            if len(parts) == count - 1:
                break
    parts.append(body[start:])
    return parts


def decode(line: str) -> Message:
    """Decode one newline-stripped line into a Message.

    Raises MalformedFrameError when the array delimiters or segments are
    missing, FieldParseError when a segment is not valid JSON of the right type.
    """
    text = line.strip()
    if len(text) < 2 or text[0] != "[" or text[-1] != "]":
        raise MalformedFrameError(f"not a bracketed frame: {text[:80]!r}")

    parts = split_frame(text[1:-1])
    if len(parts) != FIELD_COUNT:
        raise MalformedFrameError(
            f"expected {FIELD_COUNT} fields, found {len(parts)}: {text[:80]!r}")

    values = []
    for index, part in enumerate(parts):
        try:
            values.append(json.loads(part))
        except (ValueError, RecursionError) as ex:
            raise FieldParseError(index, FIELD_NAMES[index], str(ex)) from ex

    try:
        msg_id = _expect_int(values[0], "id")
    except TypeError as ex:
        raise FieldParseError(0, "id", str(ex)) from ex
    try:
        command = _expect_str(values[1], "command")
    except TypeError as ex:
        raise FieldParseError(1, "command", str(ex)) from ex
    try:
        payload = Payload.from_wire(values[2])
    except TypeError as ex:
        raise FieldParseError(2, "payload", str(ex)) from ex

    return Message(id=msg_id, command=command, payload=payload)


def encode(message: Message) -> str:
    """Encode a Message as a single frame line, without the trailing newline."""
    fields = (message.id, message.command, message.payload.to_wire())
    encoded = []
    for name, value in zip(FIELD_NAMES, fields):
        try:
            encoded.append(_dumps(value))
        except (TypeError, ValueError) as ex:
            raise EncodeError(f"cannot encode {name}: {ex}") from ex
    return "[" + ",".join(encoded) + "]"


def encode_object(obj) -> str:
    """Encode a bare JSON object line (used for the handshake record)."""
    try:
        return _dumps(obj)
    except (TypeError, ValueError) as ex:
        raise EncodeError(f"cannot encode object: {ex}") from ex


def _dumps(value) -> str:
    # ASCII output: no raw newline, and lone surrogates become \u escapes
    # instead of failing the UTF-8 write
    return json.dumps(value, separators=(",", ":"), ensure_ascii=True, allow_nan=False)


__all__ = [
    "DecodeError",
    "EncodeError",
    "decode",
    "encode",
    "encode_object",
    "split_frame",
]
