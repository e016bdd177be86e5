from __future__ import annotations
from typing import Optional, Protocol, Tuple

from ltclient.protocol.message import Position


class Evaluator(Protocol):
    def evaluate(self, code: str, position: Optional[Position]) -> Tuple[str, Optional[Position]]: ...
