"""Computation cost estimators.

Two interchangeable strategies share the `estimate(task, workflow, machine)`
contract:

 * StaticCostEstimator  -- task.length / machine.speed.
 * LearnedCostEstimator -- asks an external predictor for the duration using the
   fixed feature row (task_length, num_parents, vm_mips, vm_pes). Any failure
   (no predictor, exception, timeout, negative / non-finite answer) falls back to
   the static estimate; the fallback is logged and counted, never raised.

The predictor is injected (see `load_predictor` for the joblib-persisted model
case), so the absence of a model is a state of the estimator instance.
"""
from __future__ import annotations
from typing import Callable, Optional, Tuple
import logging, math, threading
import joblib, numpy as np

from .errors import ConfigurationError
from .model import Machine, Task, Workflow

logger = logging.getLogger("pheft.estimators")

FEATURE_NAMES = ("task_length", "num_parents", "vm_mips", "vm_pes")

Features = Tuple[float, int, float, int]
Predictor = Callable[[float, int, float, int], float]

DEFAULT_TIMEOUT = 5.0


def feature_row(task: Task, workflow: Workflow, machine: Machine) -> Features:
    return (float(task.length), len(task.parents), float(machine.speed), int(machine.cores))


class StaticCostEstimator:
    name = "static"

    def estimate(self, task: Task, workflow: Workflow, machine: Machine) -> float:
        return float(task.length) / float(machine.speed)


class LearnedCostEstimator:
    """Model-backed estimator with a bounded, logged fallback path.

    Each prediction runs on its own daemon thread and is waited on for at most
    `timeout` seconds. After the first timeout the predictor is considered hung:
    every later call goes straight to the fallback, and the stuck thread is left
    behind without blocking interpreter exit.

    Args:
        predictor: callable (task_length, num_parents, vm_mips, vm_pes) -> duration, or None.
        fallback: estimator used whenever the predictor cannot answer.
        timeout: seconds to wait for a single prediction; None waits forever and
            calls the predictor inline.
    """
    name = "learned"

    def __init__(self, predictor: Optional[Predictor] = None, fallback=None, timeout: Optional[float] = DEFAULT_TIMEOUT):
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(f"predictor timeout must be positive, got {timeout}")
        self.predictor = predictor
        self.fallback = fallback if fallback is not None else StaticCostEstimator()
        self.timeout = timeout
        self.fallback_count = 0
        self._hung = False
        if predictor is None:
            logger.warning("no cost predictor configured; using %s estimates", getattr(self.fallback, "name", "fallback"))

    @property
    def available(self) -> bool:
        return self.predictor is not None and not self._hung

    def _call(self, features: Features) -> float:
        if self.timeout is None:
            return self.predictor(*features)
        box = {}

        def run():
            try:
                box["value"] = self.predictor(*features)
            except Exception as exc:
                box["error"] = exc

        worker = threading.Thread(target=run, name="pheft-predictor", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            self._hung = True
            raise TimeoutError(f"timed out after {self.timeout}s; predictor disabled for the rest of the run")
        if "error" in box:
            raise box["error"]
        return box["value"]

    def _fall_back(self, task, workflow, machine, reason):
        self.fallback_count += 1
        logger.warning("prediction for task %r on machine %r failed (%s); using fallback estimate",
                       task.id, machine.id, reason)
        return self.fallback.estimate(task, workflow, machine)

    def estimate(self, task: Task, workflow: Workflow, machine: Machine) -> float:
        if not self.available:
            self.fallback_count += 1
            return self.fallback.estimate(task, workflow, machine)
        features = feature_row(task, workflow, machine)
        try:
            value = float(self._call(features))
        except Exception as exc:
            return self._fall_back(task, workflow, machine, f"{type(exc).__name__}: {exc}")
        if not math.isfinite(value) or value < 0:
            return self._fall_back(task, workflow, machine, f"invalid prediction {value!r}")
        logger.debug("predicted %.4f for task %r on machine %r", value, task.id, machine.id)
        return value


def load_predictor(model_path) -> Optional[Predictor]:
    """Load a joblib-persisted regressor exposing `.predict(X)`.

    Returns None when the model cannot be loaded; the caller then gets a
    LearnedCostEstimator that always falls back.
    """
    if model_path is None:
        return None
    try:
        model = joblib.load(model_path)
    except Exception as exc:
        logger.warning("could not load cost model from %s: %s", model_path, exc)
        return None
    if not hasattr(model, "predict"):
        logger.warning("object loaded from %s has no predict(); ignoring it", model_path)
        return None
    logger.info("loaded cost model %s from %s", type(model).__name__, model_path)

    def predict(task_length, num_parents, vm_mips, vm_pes):
        x = np.array([[task_length, num_parents, vm_mips, vm_pes]], dtype=float)
        return float(np.asarray(model.predict(x)).ravel()[0])

    return predict


ESTIMATORS = {
    StaticCostEstimator.name: StaticCostEstimator,
    LearnedCostEstimator.name: LearnedCostEstimator,
}


def make_estimator(name: str = "static", model_path=None, predictor: Optional[Predictor] = None,
                   timeout: Optional[float] = DEFAULT_TIMEOUT):
    key = name.strip().lower()
    if key not in ESTIMATORS:
        raise ConfigurationError(f"unknown estimator {name!r}; available: {sorted(ESTIMATORS)}")
    if key == StaticCostEstimator.name:
        return StaticCostEstimator()
    if predictor is None:
        predictor = load_predictor(model_path)
    return LearnedCostEstimator(predictor=predictor, timeout=timeout)
