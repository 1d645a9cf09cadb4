# src/immunoengine/errors.py


class ImmunoEngineError(Exception):
    """Base class for errors raised by the engine."""


class InvalidArgumentError(ImmunoEngineError, ValueError):
    """A required pathogen/medicament reference was missing or a value was unusable."""


class UntrackedPathogenError(ImmunoEngineError, LookupError):
    """A response was read for update or written for a pathogen the patient does not track."""

    def __init__(self, pathogen_id: int, patient_id: str):
        super().__init__(f"Pathogen {pathogen_id} is not tracked by patient '{patient_id}'.")
        self.pathogen_id = pathogen_id
        self.patient_id = patient_id
