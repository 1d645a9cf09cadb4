# src/immunoengine/pathogen.py
from __future__ import annotations

from typing import Mapping, Optional

import numpy as np

from .types import LoadParams


class Pathogen:
    """
    One pathogen strain infecting a patient.

    pathogen_id       : unique integer identity (used as registry key by Patient)
    load              : current burden, clamped to >= 0 on every assignment
    growth_rate       : intrinsic per-step reproduction rate
    alpha             : sensitivity of the load to medication suppression
    resistance        : med_id -> resistance coefficient
    sensitivity       : med_id -> sensitivity coefficient
    immune_reactivity : how strongly the host response suppresses this strain

    Hashing and equality are by object identity, so a Pathogen can key the
    load/response mappings exchanged with Patient.
    """

    def __init__(self, pathogen_id: int, load: float, growth_rate: float, alpha: float,
                 resistance: Optional[Mapping[str, float]] = None,
                 sensitivity: Optional[Mapping[str, float]] = None,
                 immune_reactivity: float = 0.0):
        self.pathogen_id = int(pathogen_id)
        self.growth_rate = float(growth_rate)
        self.alpha = float(alpha)
        self.resistance = dict(resistance or {})
        self.sensitivity = dict(sensitivity or {})
        self.immune_reactivity = float(immune_reactivity)
        self.load = load

    @property
    def load(self) -> float:
        return self._load

    @load.setter
    def load(self, value: float) -> None:
        self._load = max(0.0, float(value))

    def efficacy(self, med_id: str) -> float:
        """Net suppression weight of one medication: max(0, sensitivity - resistance)."""
        return max(0.0, self.sensitivity.get(med_id, 0.0) - self.resistance.get(med_id, 0.0))

    def drug_pressure(self, concentrations: Mapping[str, float]) -> float:
        """
        Sum over referenced medications of concentration * efficacy.
        Medications absent from `concentrations` have not been given yet -> 0.
        """
        med_ids = sorted(set(self.resistance) | set(self.sensitivity))
        if not med_ids:
            return 0.0
        conc = np.array([concentrations.get(m, 0.0) for m in med_ids], dtype=float)
        eff = np.array([self.efficacy(m) for m in med_ids], dtype=float)
        return float(np.dot(np.maximum(conc, 0.0), eff))

    def compute_load(self, concentrations: Mapping[str, float], immune_response: float = 0.0,
                     params: LoadParams = LoadParams()) -> float:
        """
        Load for the next step. Pure: self.load is left untouched so that every
        pathogen of a step can be computed from the same snapshot.

          growth      = r * L                (or r * L * (1 - L/K) with carrying_capacity K)
          drug_kill   = drug_weight * alpha * L * sum_m(c_m * e_m)
          immune_kill = immune_weight * immune_reactivity * I * L
          L_next      = max(0, L + growth - drug_kill - immune_kill)
        """
        L = self._load
        if params.carrying_capacity is None:
            growth = self.growth_rate * L
        else:
            growth = self.growth_rate * L * (1.0 - L / params.carrying_capacity)
        drug_kill = params.drug_weight * self.alpha * L * self.drug_pressure(concentrations)
        immune_kill = params.immune_weight * self.immune_reactivity * max(0.0, immune_response) * L
        return max(0.0, L + growth - drug_kill - immune_kill)

    def __repr__(self) -> str:
        return f"Pathogen(pathogen_id={self.pathogen_id}, load={self._load:.4g})"
