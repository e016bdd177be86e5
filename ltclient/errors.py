from __future__ import annotations


class LtClientError(Exception):
    """ Base class for all ltclient errors"""
    pass


class ConfigError(LtClientError):
    """ Raised when a setting or command-line value is invalid"""


class HandshakeError(LtClientError):
    """ Raised when the identity record cannot be built"""


class ConnectError(LtClientError):
    """ Raised when the connection to the editor cannot be opened"""


class ChannelError(LtClientError):
    """ Base class for errors on an open connection"""


class ReadError(ChannelError):
    """ Raised when a line cannot be read from the connection"""


class WriteError(ChannelError):
    """ Raised when a frame cannot be written to the connection"""


class ChannelClosedError(WriteError):
    """ Raised when writing to a connection that has been closed"""


class DecodeError(LtClientError):
    """ Raised when a line is not a valid frame"""


class MalformedFrameError(DecodeError):
    """ Raised when the outer `[...]` or the three segments are missing"""


class FieldParseError(DecodeError):
    """ Raised when one of the three frame fields fails to parse"""

    def __init__(self, index: int, field: str, reason: str):
        super().__init__(f"frame field {index} ({field}): {reason}")
        self.index = index
        self.field = field
        self.reason = reason


class EncodeError(LtClientError):
    """ Raised when a message cannot be serialised"""


class EvaluatorError(LtClientError):
    """ Raised when an evaluator backend cannot be loaded"""
