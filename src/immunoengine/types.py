# src/immunoengine/types.py
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

# Time is counted in whole TIMESTEPS. One call to the driver's step() = one step.
Cohort = Literal["young", "adult", "elderly"]


@dataclass(frozen=True)
class Medicament:
    """
    A medication as seen by a patient.

    med_id : identifier used to key concentrations (e.g., "amoxicillin")
    h      : per-step retention factor in [0, 1]
             0 -> cleared instantly, 1 -> never decays
    """
    med_id: str
    h: float

    def __post_init__(self) -> None:
        if not self.med_id:
            raise ValueError("med_id must be a non-empty string.")
        if not (0.0 <= self.h <= 1.0):
            raise ValueError(f"h must be in [0, 1] (got {self.h}).")

    @classmethod
    def from_half_life(cls, med_id: str, half_life: float, dt: float = 1.0) -> "Medicament":
        """
        Build a medicament from its elimination half-life.
        half_life and dt share the same time unit; h = 0.5 ** (dt / half_life).
        """
        if not (half_life > 0):
            raise ValueError(f"half_life must be > 0 (got {half_life}).")
        if not (dt > 0):
            raise ValueError(f"dt must be > 0 (got {dt}).")
        return cls(med_id=med_id, h=0.5 ** (dt / half_life))


@dataclass(frozen=True)
class LoadParams:
    """
    Coefficients of the pathogen load update.

    drug_weight       : global scale on medication suppression
    immune_weight     : global scale on immune suppression
    carrying_capacity : None for unbounded exponential growth,
                        otherwise logistic growth towards this load
    """
    drug_weight: float = 1.0
    immune_weight: float = 1.0
    carrying_capacity: Optional[float] = None

    def __post_init__(self) -> None:
        if self.drug_weight < 0:
            raise ValueError(f"drug_weight must be >= 0 (got {self.drug_weight}).")
        if self.immune_weight < 0:
            raise ValueError(f"immune_weight must be >= 0 (got {self.immune_weight}).")
        if self.carrying_capacity is not None and not (self.carrying_capacity > 0):
            raise ValueError(f"carrying_capacity must be > 0 (got {self.carrying_capacity}).")


@dataclass(frozen=True)
class Dose:
    """
    A single administration of a medication.

    med_id : identifier of the medicament this dose belongs to
    amount : quantity added to the patient's current dose
    step   : timestep at which it is given (0-based)
    """
    med_id: str
    amount: float
    step: int


@dataclass(frozen=True)
class Regimen:
    """
    A collection of Dose objects that defines the full schedule.
    Order doesn't matter; the driver picks doses by step.
    """
    doses: Sequence[Dose]
