# src/immunoengine/patient.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple, Union

from .cohorts import COHORT_FORMULAS, next_response
from .errors import InvalidArgumentError, UntrackedPathogenError
from .pathogen import Pathogen
from .types import Cohort, Medicament

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatientSnapshot:
    """
    Read-only view of one patient's state.

    pathogens : (pathogen_id, load, response) per tracked pathogen, in tracking order
    doses     : (med_id, dose) per medicament ever received
    """
    patient_id: str
    cohort: str
    pathogens: Tuple[Tuple[int, float, float], ...]
    doses: Tuple[Tuple[str, float], ...]


class Patient:
    """
    One host: per-pathogen immune responses and per-medication doses.

    The cohort ("young", "adult", "elderly") picks the immune-response formula
    and cannot change after construction. Pathogens and medicaments are kept in
    registries keyed by pathogen_id / med_id; all state belongs to this patient.

    Mutating calls take a per-patient lock, so update_immune_responses and
    apply_decay never interleave their read and write phases.
    """

    def __init__(self, patient_id: str, beta: float, fatigue_coeff: float, cohort: Cohort = "adult"):
        if not patient_id:
            raise InvalidArgumentError("patient_id must be a non-empty string.")
        if cohort not in COHORT_FORMULAS:
            raise InvalidArgumentError(
                f"Unknown cohort '{cohort}' (expected one of {sorted(COHORT_FORMULAS)}).")
        self._patient_id = str(patient_id)
        self._cohort = cohort
        self.beta = float(beta)
        self.fatigue_coeff = float(fatigue_coeff)

        self._pathogens: Dict[int, Pathogen] = {}
        self._responses: Dict[int, float] = {}
        self._medicaments: Dict[str, Medicament] = {}
        self._doses: Dict[str, float] = {}
        self._lock = threading.RLock()

    @property
    def patient_id(self) -> str:
        return self._patient_id

    @property
    def cohort(self) -> str:
        return self._cohort

    # --------------------------
    # Pathogen tracking
    # --------------------------
    def add_pathogen(self, p: Pathogen, initial_response: float = 0.0) -> None:
        """Start tracking p with response max(0, initial_response). No-op if already tracked."""
        if p is None:
            raise InvalidArgumentError("pathogen must not be None.")
        with self._lock:
            if p.pathogen_id in self._pathogens:
                return
            self._pathogens[p.pathogen_id] = p
            self._responses[p.pathogen_id] = max(0.0, float(initial_response))
            logger.debug("Patient %s: tracking pathogen %d (I0=%.4g)",
                         self._patient_id, p.pathogen_id, self._responses[p.pathogen_id])

    def remove_pathogen(self, p: Pathogen) -> None:
        if p is None:
            raise InvalidArgumentError("pathogen must not be None.")
        with self._lock:
            if self._pathogens.pop(p.pathogen_id, None) is not None:
                del self._responses[p.pathogen_id]
                logger.debug("Patient %s: stopped tracking pathogen %d", self._patient_id, p.pathogen_id)

    @property
    def pathogens(self) -> Tuple[Pathogen, ...]:
        with self._lock:
            return tuple(self._pathogens.values())

    def is_tracking(self, p: Pathogen) -> bool:
        return p is not None and p.pathogen_id in self._pathogens

    # --------------------------
    # Medication doses
    # --------------------------
    def add_dose(self, med: Medicament, amount: float) -> float:
        """Add amount (may be negative) to the current dose; the result is clamped to >= 0."""
        if med is None:
            raise InvalidArgumentError("medicament must not be None.")
        with self._lock:
            self._medicaments[med.med_id] = med
            after = max(0.0, self._doses.get(med.med_id, 0.0) + float(amount))
            self._doses[med.med_id] = after
            return after

    def set_dose(self, med: Medicament, amount: float) -> float:
        """Replace the current dose with max(0, amount)."""
        if med is None:
            raise InvalidArgumentError("medicament must not be None.")
        with self._lock:
            self._medicaments[med.med_id] = med
            self._doses[med.med_id] = max(0.0, float(amount))
            return self._doses[med.med_id]

    def get_dose(self, med: Union[Medicament, str, None]) -> float:
        """Current dose; 0.0 for a medicament never received."""
        if med is None:
            return 0.0
        med_id = med if isinstance(med, str) else med.med_id
        return self._doses.get(med_id, 0.0)

    @property
    def medicaments(self) -> Tuple[Medicament, ...]:
        with self._lock:
            return tuple(self._medicaments.values())

    def apply_decay(self) -> Dict[str, float]:
        """
        One step of elimination: D <- max(0, h * D) for every medicament.
        All new values come from the pre-decay snapshot before any is written.
        """
        with self._lock:
            decayed = {
                med_id: max(0.0, self._medicaments[med_id].h * dose)
                for med_id, dose in self._doses.items()
            }
            self._doses.update(decayed)
            return dict(decayed)

    def concentrations_by_id(self) -> Dict[str, float]:
        """Doses keyed by med_id, the form Pathogen.compute_load expects."""
        with self._lock:
            return dict(self._doses)

    # --------------------------
    # Immune responses
    # --------------------------
    def get_immune_response(self, p: Pathogen) -> float:
        if p is None:
            return 0.0
        return self._responses.get(p.pathogen_id, 0.0)

    def set_immune_response(self, p: Pathogen, value: float) -> None:
        if p is None:
            raise InvalidArgumentError("pathogen must not be None.")
        with self._lock:
            if p.pathogen_id not in self._responses:
                raise UntrackedPathogenError(p.pathogen_id, self._patient_id)
            self._responses[p.pathogen_id] = max(0.0, float(value))

    def update_immune_responses(self, next_loads: Mapping[Pathogen, float]) -> Dict[Pathogen, float]:
        """
        Advance every tracked pathogen's response by one step.

        next_loads : pathogen -> load for the next step. Tracked pathogens missing
                     from it fall back to their current stored load.

        Returns the new response for every tracked pathogen. Every key of
        next_loads must be tracked, otherwise UntrackedPathogenError is raised and
        nothing is committed.
        """
        with self._lock:
            loads_by_id: Dict[int, float] = {}
            for p, L_next in next_loads.items():
                if p is None:
                    raise InvalidArgumentError("pathogen must not be None.")
                if p.pathogen_id not in self._pathogens:
                    raise UntrackedPathogenError(p.pathogen_id, self._patient_id)
                loads_by_id[p.pathogen_id] = float(L_next)

            updated: Dict[Pathogen, float] = {}
            for pid, p in self._pathogens.items():
                L_next = loads_by_id.get(pid, p.load)
                updated[p] = next_response(self._cohort, p, L_next, self._responses[pid],
                                           self.beta, self.fatigue_coeff)

            for p, I_next in updated.items():
                self._responses[p.pathogen_id] = I_next
            return updated

    # --------------------------
    # Diagnostics
    # --------------------------
    def snapshot(self) -> PatientSnapshot:
        with self._lock:
            return PatientSnapshot(
                patient_id=self._patient_id,
                cohort=self._cohort,
                pathogens=tuple((pid, p.load, self._responses[pid]) for pid, p in self._pathogens.items()),
                doses=tuple(self._doses.items()),
            )

    def __repr__(self) -> str:
        return (f"Patient(patient_id={self._patient_id!r}, cohort={self._cohort!r}, "
                f"pathogens={len(self._pathogens)}, medicaments={len(self._doses)})")


def format_state(snap: PatientSnapshot) -> str:
    """Human-readable rendering of a snapshot."""
    lines = [f"Patient {snap.patient_id} ({snap.cohort}) - pathogens:"]
    for pid, load, response in snap.pathogens:
        lines.append(f"  - {pid} : L={load:.4f} | I={response:.4f}")
    lines.append(" Medicaments present:")
    for med_id, dose in snap.doses:
        lines.append(f"  - {med_id} : dose={dose:.4f}")
    return "\n".join(lines)
