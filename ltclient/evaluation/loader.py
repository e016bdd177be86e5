"""Resolve the configured evaluator backend.

The setting is either a builtin name ("echo") or a `package.module:attr`
path. The attribute is walked with dotted traversal, so `pkg.mod:Cls.factory`
works. Classes and factories are called without arguments; any other object
must already provide `evaluate`.
"""
from __future__ import annotations

import importlib
from typing import Any, Callable, Dict

from ltclient.errors import EvaluatorError
from ltclient.evaluation.backend import Evaluator
from ltclient.evaluation.echo import EchoEvaluator

BUILTIN_EVALUATORS: Dict[str, Callable[[], Evaluator]] = {
    "echo": EchoEvaluator,
}


def resolve_object_path(path: str) -> Any:
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise EvaluatorError(f"expected 'module:attr', got {path!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as ex:
        raise EvaluatorError(f"cannot import {module_name!r}: {ex}") from ex
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise EvaluatorError(f"{path!r}: no attribute {attr!r}") from None
    return obj


def load_evaluator(spec: str) -> Evaluator:
    if spec in BUILTIN_EVALUATORS:
        return BUILTIN_EVALUATORS[spec]()
    obj = resolve_object_path(spec)
    if not hasattr(obj, "evaluate") or isinstance(obj, type):
        if not callable(obj):
            raise EvaluatorError(f"{spec!r} is neither an evaluator nor a factory")
        obj = obj()
    if not callable(getattr(obj, "evaluate", None)):
        raise EvaluatorError(f"{spec!r} did not produce an object with evaluate()")
    return obj
