# src/immunoengine/dosing.py
from __future__ import annotations

from typing import Sequence, Tuple
import numpy as np

from .types import Dose, Regimen


def single_dose(med_id: str, amount: float, step: int = 0) -> Regimen:
    """
    Create a regimen with exactly one dose.
    Example: 500 units of "amoxicillin" at step 0.
    """
    _validate_positive("amount", amount)
    _validate_step("step", step)
    return Regimen(doses=(Dose(med_id=med_id, amount=float(amount), step=int(step)),))


def every_n_steps(med_id: str, amount: float, every: int, n_steps: int, start_step: int = 0) -> Regimen:
    """
    Make a repeated schedule like: 250 units every 3 steps over 30 steps.

    amount     : size of each dose
    every      : spacing between doses, in steps
    n_steps    : horizon; doses are given at start_step, start_step + every, ... < n_steps
    start_step : step of the very first dose
    """
    _validate_positive("amount", amount)
    _validate_positive_int("every", every)
    _validate_positive_int("n_steps", n_steps)
    _validate_step("start_step", start_step)

    steps = np.arange(start_step, n_steps, every, dtype=int)  # e.g., [0, 3, 6, 9, ...]
    doses = tuple(Dose(med_id=med_id, amount=float(amount), step=int(s)) for s in steps)
    return Regimen(doses=doses)


def combine_regimens(*regimens: Regimen) -> Regimen:
    """
    Merge multiple regimens into one (e.g., a loading dose + a maintenance schedule).
    Doses are concatenated and sorted by (step, med_id).
    """
    all_doses: list[Dose] = []
    for r in regimens:
        all_doses.extend(r.doses)
    return Regimen(doses=tuple(sorted(all_doses, key=lambda d: (d.step, d.med_id))))


def from_explicit_schedule(med_id: str, entries: Sequence[Tuple[int, float]]) -> Regimen:
    """
    Build a regimen from manual (step, amount) entries.
    Example: entries=[(0, 250), (3, 250), (6, 125)]
    """
    doses: list[Dose] = []
    for step, amount in entries:
        _validate_positive("amount", amount)
        _validate_step("step", step)
        doses.append(Dose(med_id=med_id, amount=float(amount), step=int(step)))
    doses.sort(key=lambda d: d.step)
    return Regimen(doses=tuple(doses))


def doses_at(regimen: Regimen, step: int) -> tuple[Dose, ...]:
    """All doses scheduled at the given step."""
    return tuple(d for d in regimen.doses if d.step == step)


# --------------------------
# Small input validators
# --------------------------
def _validate_positive(name: str, x: float) -> None:
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")

def _validate_step(name: str, x: int) -> None:
    if not (isinstance(x, (int, np.integer)) and x >= 0):
        raise ValueError(f"{name} must be a non-negative integer (got {x}).")

def _validate_positive_int(name: str, x: int) -> None:
    if not (isinstance(x, int) and x > 0):
        raise ValueError(f"{name} must be a positive integer (got {x}).")
