# Core type aliases for the ltclient wire model.
# Frames travel as `[id, command, payload]` JSON arrays, one per line. The
# decoded form is `ltclient.protocol.message.Message`; these aliases are used
# where code deals with the raw JSON side of a frame.

from typing import Any, Dict

__version__ = "0.1.0"

# A JSON value as produced by json.loads
JsonValue = Any
# A JSON object (payloads and the handshake record)
JsonObject = Dict[str, Any]
