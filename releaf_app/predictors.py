"""Scalar predictors with an untrained and a trained implementation.

Callers only see ``predict(features) -> float`` and ``is_trained``; the
heat-zone regressor and the climate-impact scorer swap a
:class:`LinearPredictor` for a :class:`NetworkPredictor` once training
succeeds.
"""

from __future__ import annotations

import random
import time
import warnings
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.metrics import mean_absolute_error
from sklearn.model_selection import train_test_split

from .models import TrainingReport
from .scoring import clamp_value

VALIDATION_SPLIT = 0.2


def _bounded(value: float, lower: Optional[float], upper: Optional[float]) -> float:
    if lower is not None:
        value = max(lower, value)
    if upper is not None:
        value = min(upper, value)
    return value


@dataclass(frozen=True)
class LinearPredictor:
    """Fixed weighted sum of normalised features."""

    weights: Mapping[str, float]
    scale: float = 1.0
    lower: Optional[float] = None
    upper: Optional[float] = None

    is_trained = False

    def predict(self, features: Mapping[str, float]) -> float:
        total = sum(weight * features[name] for name, weight in self.weights.items())
        return _bounded(total * self.scale, self.lower, self.upper)


@dataclass(frozen=True)
class NetworkPredictor:
    """A fitted scikit-learn regressor over an ordered feature vector."""

    model: Any
    feature_names: Tuple[str, ...]
    scale: float = 1.0
    lower: Optional[float] = None
    upper: Optional[float] = None

    is_trained = True

    def predict(self, features: Mapping[str, float]) -> float:
        row = np.array([[features[name] for name in self.feature_names]], dtype=float)
        raw = float(self.model.predict(row)[0])
        return _bounded(raw * self.scale, self.lower, self.upper)


def jitter(
    rng: random.Random, value: float, spread: float, lower: float, upper: float
) -> float:
    """Uniform noise of ±``spread`` around ``value``, clamped to the bounds."""

    return clamp_value(value + (rng.random() - 0.5) * 2 * spread, lower, upper)


def model_seed(rng: random.Random) -> int:
    return rng.randrange(2**31 - 1)


def fit_model(
    name: str,
    model: Any,
    features: np.ndarray,
    targets: np.ndarray,
    seed: int,
    target_scale: Optional[float] = None,
) -> TrainingReport:
    """Fit ``model`` on 80 % of the samples and report on the other 20 %.

    ``target_scale`` marks a regressor whose targets were divided by that
    factor; the validation MAE is reported back in original units.
    Classifiers leave it unset and report subset accuracy only.
    """

    x_train, x_test, y_train, y_test = train_test_split(
        features, targets, test_size=VALIDATION_SPLIT, random_state=seed
    )
    started = time.perf_counter()
    with warnings.catch_warnings():
        # A handful of epochs is intentional.
        warnings.simplefilter("ignore", category=ConvergenceWarning)
        model.fit(x_train, y_train)
    duration = time.perf_counter() - started

    validation_mae = None
    if target_scale is not None:
        predictions = model.predict(x_test)
        validation_mae = float(mean_absolute_error(y_test * target_scale, predictions * target_scale))

    return TrainingReport(
        model=name,
        samples=int(len(features)),
        epochs=int(getattr(model, "n_iter_", 0)),
        training_loss=float(getattr(model, "loss_", float("nan"))),
        validation_score=float(model.score(x_test, y_test)),
        validation_mae=validation_mae,
        duration_seconds=round(duration, 3),
    )


__all__ = [
    "VALIDATION_SPLIT",
    "LinearPredictor",
    "NetworkPredictor",
    "jitter",
    "model_seed",
    "fit_model",
]
