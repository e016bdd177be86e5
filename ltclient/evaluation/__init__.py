"""Evaluation side of the client: the backend protocol, builtin backends and
the per-request task that turns an eval frame into a result frame."""

from ltclient.evaluation.backend import Evaluator
from ltclient.evaluation.echo import EchoEvaluator
from ltclient.evaluation.loader import load_evaluator
from ltclient.evaluation.task import NOTHING_SELECTED, evaluate_request, run_evaluation

__all__ = [
    "EchoEvaluator",
    "Evaluator",
    "NOTHING_SELECTED",
    "evaluate_request",
    "load_evaluator",
    "run_evaluation",
]
