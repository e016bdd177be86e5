from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ltclient.errors import ChannelError, EncodeError
from ltclient.evaluation.backend import Evaluator
from ltclient.protocol.message import Message, Payload

if TYPE_CHECKING:
    from ltclient.session import Session

logger = logging.getLogger(__name__)

NOTHING_SELECTED = "Nothing selected. Line echo not implemented yet."


def evaluate_request(evaluator: Evaluator, message: Message) -> Message:
    """Build the result frame for one eval request.

    Evaluator failures become the result text; the peer always gets an answer.
    """
    position = message.payload.position
    code = message.payload.code or ""
    if not code:
        result = NOTHING_SELECTED
    else:
        try:
            result, position = evaluator.evaluate(code, position)
        except Exception as ex:
            logger.exception("Evaluator failed for request %d", message.id)
            result = f"{type(ex).__name__}: {ex}"
            position = message.payload.position
    return message.reply(Payload(result=str(result), position=position))


def run_evaluation(session: Session, evaluator: Evaluator, message: Message) -> None:
    reply = evaluate_request(evaluator, message)
    try:
        session.send(reply)
    except (EncodeError, ChannelError) as ex:
        logger.error("Could not send result for request %d: %s", message.id, ex)
        return
    logger.debug("Sent %s for request %d", reply.command, reply.id)
