from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ltclient import JsonObject


@dataclass(frozen=True)
class Position:
    """Cursor position in the editor buffer, 0-based. On the wire: {"line", "ch"}."""

    line: int
    column: int

    def to_wire(self) -> JsonObject:
        return {"line": self.line, "ch": self.column}

    @classmethod
    def from_wire(cls, obj: Any) -> Position:
        obj = _expect_object(obj, "pos")
        return cls(line=_expect_int(obj.get("line", 0), "pos.line"),
                   column=_expect_int(obj.get("ch", 0), "pos.ch"))


@dataclass(frozen=True)
class MetaRange:
    """Character offsets of the evaluated form. On the wire: "meta"."""

    start: int
    end: int

    def to_wire(self) -> JsonObject:
        return {"end": self.end, "start": self.start}

    @classmethod
    def from_wire(cls, obj: Any) -> MetaRange:
        obj = _expect_object(obj, "meta")
        return cls(start=_expect_int(obj.get("start", 0), "meta.start"),
                   end=_expect_int(obj.get("end", 0), "meta.end"))


# attribute name -> wire key, for the plain string fields
_STRING_FIELDS = {
    "code": "code",
    "line_ending": "line-ending",
    "mime": "mime",
    "name": "name",
    "path": "path",
    "type_name": "type-name",
    "result": "result",
}

_KNOWN_KEYS = set(_STRING_FIELDS.values()) | {"tags", "pos", "meta"}


@dataclass
class Payload:
    """
    Open record carried as the third frame field.

    Every field is optional; None means "absent" and absent fields are left
    out of the encoded object. Keys this client does not know about are kept
    in `extra` and written back as they came.
    """

    code: Optional[str] = None
    line_ending: Optional[str] = None
    mime: Optional[str] = None
    name: Optional[str] = None
    path: Optional[str] = None
    type_name: Optional[str] = None
    result: Optional[str] = None
    tags: Optional[List[str]] = None
    position: Optional[Position] = None
    meta_range: Optional[MetaRange] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> JsonObject:
        out: JsonObject = {}
        for attr, key in _STRING_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        if self.tags is not None:
            out["tags"] = list(self.tags)
        if self.position is not None:
            out["pos"] = self.position.to_wire()
        if self.meta_range is not None:
            out["meta"] = self.meta_range.to_wire()
        for key, value in self.extra.items():
            if key not in _KNOWN_KEYS:
                out[key] = value
        return out

    @classmethod
    def from_wire(cls, obj: Any) -> Payload:
        """Build a Payload from a decoded JSON object.

        Raises TypeError when the object or one of the known keys has the
        wrong JSON type. A JSON null is treated the same as a missing key.
        """
        obj = _expect_object(obj, "payload")
        kwargs: Dict[str, Any] = {}
        for attr, key in _STRING_FIELDS.items():
            value = obj.get(key)
            if value is not None:
                kwargs[attr] = _expect_str(value, key)
        tags = obj.get("tags")
        if tags is not None:
            if not isinstance(tags, list):
                raise TypeError(f"tags: expected array, got {type(tags).__name__}")
            kwargs["tags"] = [_expect_str(t, "tags[]") for t in tags]
        if obj.get("pos") is not None:
            kwargs["position"] = Position.from_wire(obj["pos"])
        if obj.get("meta") is not None:
            kwargs["meta_range"] = MetaRange.from_wire(obj["meta"])
        kwargs["extra"] = {k: v for k, v in obj.items() if k not in _KNOWN_KEYS}
        return cls(**kwargs)


@dataclass
class Message:
    """One decoded frame: `[id, command, payload]`."""

    id: int
    command: str
    payload: Payload = field(default_factory=Payload)

    def reply(self, payload: Payload, suffix: str = ".result") -> Message:
        # Responses keep the request id; the peer correlates on it alone
        return Message(id=self.id, command=self.command + suffix, payload=payload)


def _expect_object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{what}: expected object, got {type(value).__name__}")
    return value


def _expect_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what}: expected string, got {type(value).__name__}")
    return value


def _expect_int(value: Any, what: str) -> int:
    # bool is a subclass of int but true/false are not integers on the wire
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what}: expected integer, got {type(value).__name__}")
    return value
