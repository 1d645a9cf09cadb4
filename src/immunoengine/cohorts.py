# src/immunoengine/cohorts.py
import math
from typing import Callable, Dict

from .pathogen import Pathogen

# (pathogen, L_next, I_t, beta, fatigue_coeff) -> I_next (unclamped)
CohortFormula = Callable[[Pathogen, float, float, float, float], float]


def young_response(p: Pathogen, L_next: float, I_t: float, beta: float, fatigue_coeff: float) -> float:
    """Square-root stimulation, linear fatigue."""
    return I_t + beta * math.sqrt(max(0.0, L_next)) - fatigue_coeff * I_t


def adult_response(p: Pathogen, L_next: float, I_t: float, beta: float, fatigue_coeff: float) -> float:
    """Linear stimulation, linear fatigue."""
    return I_t + beta * max(0.0, L_next) - fatigue_coeff * I_t


def elderly_response(p: Pathogen, L_next: float, I_t: float, beta: float, fatigue_coeff: float) -> float:
    """Linear stimulation, quadratic fatigue."""
    return I_t + beta * max(0.0, L_next) - fatigue_coeff * I_t * I_t


COHORT_FORMULAS: Dict[str, CohortFormula] = {
    "young": young_response,
    "adult": adult_response,
    "elderly": elderly_response,
}


def next_response(cohort: str, p: Pathogen, L_next: float, I_t: float,
                  beta: float, fatigue_coeff: float) -> float:
    """Apply the cohort's formula with the load floored at 0 and the result clamped to >= 0."""
    formula = COHORT_FORMULAS[cohort]
    return max(0.0, formula(p, max(0.0, L_next), I_t, beta, fatigue_coeff))
