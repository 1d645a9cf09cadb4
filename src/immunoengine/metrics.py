# src/immunoengine/metrics.py
import numpy as np
from typing import Tuple

# Series are per-step arrays from a Trajectory; NaN marks steps where the
# pathogen was no longer tracked and is ignored by every metric.

def peak_load(L: np.ndarray) -> float:
    """Maximum load over the run."""
    return float(np.nanmax(L))

def time_of_peak(steps: np.ndarray, L: np.ndarray) -> int:
    """Step at which the load peaks (first one on ties)."""
    return int(steps[int(np.nanargmax(L))])

def peak_and_time(steps: np.ndarray, L: np.ndarray) -> Tuple[float, int]:
    """Return peak load and the step it occurs at."""
    idx = int(np.nanargmax(L))
    return float(L[idx]), int(steps[idx])

def auc_trapz(steps: np.ndarray, X: np.ndarray) -> float:
    """Area under a series via trapezoidal rule, untracked steps counted as 0."""
    return float(np.trapezoid(np.nan_to_num(X, nan=0.0), steps))

def time_to_clearance(steps: np.ndarray, L: np.ndarray, threshold: float = 0.0) -> float:
    """
    First step at which the load is <= threshold or the pathogen is no longer tracked.
    Returns NaN when the infection never clears within the run.
    """
    cleared = np.isnan(L) | (L <= threshold)
    if not np.any(cleared):
        return float("nan")
    return float(steps[int(np.argmax(cleared))])

def final_value(X: np.ndarray) -> float:
    """Last recorded (non-NaN) value of a series; NaN if none."""
    finite = X[~np.isnan(X)]
    return float(finite[-1]) if finite.size else float("nan")
