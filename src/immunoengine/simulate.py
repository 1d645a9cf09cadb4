# src/immunoengine/simulate.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

import numpy as np

from .dosing import doses_at
from .pathogen import Pathogen
from .patient import Patient
from .types import Dose, LoadParams, Medicament, Regimen

logger = logging.getLogger(__name__)


@dataclass
class Trajectory:
    """
    Recorded state of one patient, one row per step (step 0 = initial state).

    steps     : array of step indices, shape (n_steps + 1,)
    loads     : pathogen_id -> load per step (NaN once the pathogen is no longer tracked)
    responses : pathogen_id -> immune response per step (NaN once untracked)
    doses     : med_id -> dose per step
    """
    steps: np.ndarray
    loads: Dict[int, np.ndarray] = field(default_factory=dict)
    responses: Dict[int, np.ndarray] = field(default_factory=dict)
    doses: Dict[str, np.ndarray] = field(default_factory=dict)


def step(patient: Patient, load_params: LoadParams = LoadParams(),
         doses: Iterable[Dose] = (), medicaments: Optional[Mapping[str, Medicament]] = None,
         clear_threshold: Optional[float] = None) -> Dict[Pathogen, float]:
    """
    Advance one patient by one timestep.

      1. give the doses scheduled for this step (cumulative add)
      2. compute every pathogen's next load from one concentration snapshot
      3. update immune responses with those loads
      4. commit the loads to the pathogens
      5. drop pathogens at or below clear_threshold (if given)
      6. decay all medication doses

    Returns the new immune responses (pathogen -> I_next).
    """
    medicaments = medicaments or {}
    for d in doses:
        med = medicaments.get(d.med_id)
        if med is None:
            raise KeyError(f"Missing medicament '{d.med_id}' for scheduled dose at step {d.step}.")
        patient.add_dose(med, d.amount)

    concentrations = patient.concentrations_by_id()
    next_loads = {
        p: p.compute_load(concentrations, patient.get_immune_response(p), load_params)
        for p in patient.pathogens
    }
    responses = patient.update_immune_responses(next_loads)
    for p, L_next in next_loads.items():
        p.load = L_next

    if clear_threshold is not None:
        for p in list(next_loads):
            if p.load <= clear_threshold:
                logger.info("Patient %s cleared pathogen %d (load %.4g <= %.4g)",
                            patient.patient_id, p.pathogen_id, p.load, clear_threshold)
                patient.remove_pathogen(p)

    patient.apply_decay()
    return responses


def run(patient: Patient, n_steps: int, regimen: Optional[Regimen] = None,
        medicaments: Optional[Mapping[str, Medicament]] = None,
        load_params: LoadParams = LoadParams(),
        clear_threshold: Optional[float] = None) -> Trajectory:
    """
    Run `n_steps` timesteps for one patient and record its trajectory.

    regimen     : administration schedule (steps outside [0, n_steps) are ignored)
    medicaments : med_id -> Medicament for every med_id the regimen references
    """
    if not (isinstance(n_steps, int) and n_steps >= 0):
        raise ValueError(f"n_steps must be a non-negative integer (got {n_steps}).")
    regimen = regimen or Regimen(doses=())
    medicaments = dict(medicaments or {})

    # Fail before stepping rather than halfway through the run
    for med_id in {d.med_id for d in regimen.doses}:
        if med_id not in medicaments:
            raise KeyError(f"Missing medicament '{med_id}' referenced by the regimen.")

    tracked = patient.pathogens
    med_ids = list(dict.fromkeys([m.med_id for m in patient.medicaments] + list(medicaments)))

    traj = Trajectory(
        steps=np.arange(n_steps + 1),
        loads={p.pathogen_id: np.full(n_steps + 1, np.nan) for p in tracked},
        responses={p.pathogen_id: np.full(n_steps + 1, np.nan) for p in tracked},
        doses={m: np.zeros(n_steps + 1) for m in med_ids},
    )
    _record(traj, 0, patient, tracked)

    logger.debug("Running patient %s for %d steps (%d pathogens, %d doses scheduled)",
                 patient.patient_id, n_steps, len(tracked), len(regimen.doses))
    for s in range(n_steps):
        step(patient, load_params, doses_at(regimen, s), medicaments, clear_threshold)
        _record(traj, s + 1, patient, tracked)
    return traj


def _record(traj: Trajectory, idx: int, patient: Patient, tracked: Iterable[Pathogen]) -> None:
    for p in tracked:
        if patient.is_tracking(p):
            traj.loads[p.pathogen_id][idx] = p.load
            traj.responses[p.pathogen_id][idx] = patient.get_immune_response(p)
    for med_id, series in traj.doses.items():
        series[idx] = patient.get_dose(med_id)
