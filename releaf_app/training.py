"""One-shot background training of the model components."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Dict

from .constants import TRAINING_TIMEOUT_SECONDS
from .models import TrainingReport

logger = logging.getLogger(__name__)


class TrainingAlreadyAttempted(RuntimeError):
    """Raised when an engine's models are trained a second time."""


class ModelTrainer:
    """Fits every component concurrently under one shared deadline.

    Components expose ``name``, ``fit() -> (predictor, report)`` and
    ``activate(predictor, report)``. A component whose fit fails or misses
    the deadline keeps its untrained predictor.
    """

    def __init__(self, timeout: float = TRAINING_TIMEOUT_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout = timeout
        self.clock = clock
        self.attempted = False
        self._lock = threading.Lock()

    def train(self, *components: Any) -> Dict[str, TrainingReport]:
        with self._lock:
            if self.attempted:
                raise TrainingAlreadyAttempted("Models have already been trained for this engine")
            self.attempted = True

        reports: Dict[str, TrainingReport] = {}
        if not components:
            return reports

        deadline = self.clock() + self.timeout
        executor = ThreadPoolExecutor(max_workers=len(components), thread_name_prefix="releaf-train")
        try:
            futures = {component.name: (component, executor.submit(component.fit)) for component in components}
            for name, (component, future) in futures.items():
                remaining = max(0.0, deadline - self.clock())
                try:
                    predictor, report = future.result(timeout=remaining)
                except FutureTimeout:
                    logger.warning("Training %s exceeded %.0fs; keeping fallback predictor", name, self.timeout)
                    continue
                except Exception as exc:
                    logger.warning("Training %s failed: %s", name, exc)
                    continue
                component.activate(predictor, report)
                reports[name] = report
                logger.info(
                    "Trained %s on %d samples in %.2fs (validation score %.3f)",
                    name,
                    report.samples,
                    report.duration_seconds,
                    report.validation_score,
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return reports


__all__ = ["TrainingAlreadyAttempted", "ModelTrainer"]
