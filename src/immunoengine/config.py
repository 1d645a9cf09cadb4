# src/immunoengine/config.py
"""
Scenario loading from YAML: top-level keys n_steps, patient, medicaments,
pathogens, regimen and the optional load_params / clear_threshold.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from .dosing import combine_regimens, every_n_steps, from_explicit_schedule, single_dose
from .pathogen import Pathogen
from .patient import Patient
from .types import LoadParams, Medicament, Regimen

logger = logging.getLogger(__name__)


@dataclass
class Scenario:
    patient: Patient
    medicaments: Dict[str, Medicament]
    regimen: Regimen
    n_steps: int
    load_params: LoadParams = field(default_factory=LoadParams)
    clear_threshold: Optional[float] = None


def build_medicaments(entries: List[dict]) -> Dict[str, Medicament]:
    meds: Dict[str, Medicament] = {}
    for m in entries:
        med_id = str(m["id"])
        if "h" in m:
            med = Medicament(med_id=med_id, h=float(m["h"]))
        elif "half_life" in m:
            med = Medicament.from_half_life(med_id, float(m["half_life"]), float(m.get("dt", 1.0)))
        else:
            raise KeyError(f"Medicament '{med_id}' needs either 'h' or 'half_life'.")
        meds[med_id] = med
    return meds


def build_pathogen(entry: dict) -> Pathogen:
    return Pathogen(
        pathogen_id=int(entry["id"]),
        load=float(entry["load"]),
        growth_rate=float(entry["growth_rate"]),
        alpha=float(entry.get("alpha", 0.0)),
        resistance={str(k): float(v) for k, v in (entry.get("resistance") or {}).items()},
        sensitivity={str(k): float(v) for k, v in (entry.get("sensitivity") or {}).items()},
        immune_reactivity=float(entry.get("immune_reactivity", 0.0)),
    )


def build_regimen(entries: List[dict], n_steps: int) -> Regimen:
    parts: List[Regimen] = []
    for e in entries:
        med_id = str(e["medicament"])
        if "schedule" in e:
            parts.append(from_explicit_schedule(med_id, [(int(s), float(a)) for s, a in e["schedule"]]))
        elif "every" in e:
            if n_steps == 0:
                continue
            parts.append(every_n_steps(med_id, float(e["amount"]), int(e["every"]), n_steps,
                                       start_step=int(e.get("start", 0))))
        else:
            parts.append(single_dose(med_id, float(e["amount"]), int(e.get("step", 0))))
    return combine_regimens(*parts)


def build_scenario(cfg: dict) -> Scenario:
    n_steps = int(cfg["n_steps"])

    pc = cfg["patient"]
    patient = Patient(
        patient_id=str(pc["id"]),
        beta=float(pc["beta"]),
        fatigue_coeff=float(pc["fatigue_coeff"]),
        cohort=pc.get("cohort", "adult"),
    )
    for entry in cfg.get("pathogens") or []:
        patient.add_pathogen(build_pathogen(entry), float(entry.get("initial_response", 0.0)))

    lp = cfg.get("load_params") or {}
    cap = lp.get("carrying_capacity")
    load_params = LoadParams(
        drug_weight=float(lp.get("drug_weight", 1.0)),
        immune_weight=float(lp.get("immune_weight", 1.0)),
        carrying_capacity=None if cap is None else float(cap),
    )
    threshold = cfg.get("clear_threshold")

    scenario = Scenario(
        patient=patient,
        medicaments=build_medicaments(cfg.get("medicaments") or []),
        regimen=build_regimen(cfg.get("regimen") or [], n_steps),
        n_steps=n_steps,
        load_params=load_params,
        clear_threshold=None if threshold is None else float(threshold),
    )
    logger.debug("Built scenario for patient %s: %d pathogens, %d medicaments, %d doses",
                 patient.patient_id, len(patient.pathogens), len(scenario.medicaments),
                 len(scenario.regimen.doses))
    return scenario


def load_scenario(path: Union[str, Path]) -> Scenario:
    with Path(path).open("r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    if not isinstance(cfg, dict):
        raise ValueError(f"Scenario file {path} must contain a mapping at the top level.")
    return build_scenario(cfg)
