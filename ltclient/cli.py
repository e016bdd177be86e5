from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from ltclient.config import load_settings
from ltclient.connection import Channel
from ltclient.errors import LtClientError
from ltclient.evaluation.loader import load_evaluator
from ltclient.lifecycle import Lifecycle, parse_client_id
from ltclient.log import setup_logging
from ltclient.session import Session

logger = logging.getLogger(__name__)

EXIT_FATAL = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ltclient",
        description="Evaluation client for a LightTable-style editor host.",
    )
    parser.add_argument("port", help="port the editor is listening on")
    parser.add_argument("client_id", help="client id assigned by the editor (decimal integer)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
        setup_logging(settings)
    except (LtClientError, OSError) as ex:
        print(f"ltclient: {ex}", file=sys.stderr)
        return EXIT_FATAL

    logger.info("Args: port=%s client_id=%s", args.port, args.client_id)
    try:
        client_id = parse_client_id(args.client_id)
        evaluator = load_evaluator(settings.evaluator)
        channel = Channel.open(settings.host, args.port, timeout=settings.connect_timeout)
    except LtClientError as ex:
        logger.error("%s", ex)
        print(f"ltclient: {ex}", file=sys.stderr)
        return EXIT_FATAL

    lifecycle = Lifecycle(Session(channel), settings, client_id, evaluator)
    # Before the dispatcher starts, so every worker thread inherits the mask
    lifecycle.subscribe_signals()
    try:
        return lifecycle.run()
    except LtClientError as ex:
        logger.error("%s", ex)
        channel.close()
        return EXIT_FATAL
