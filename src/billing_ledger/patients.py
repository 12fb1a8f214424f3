"""Patient lookup capability consumed by the ledger."""

import logging
from collections.abc import Iterable
from typing import Protocol

from .schemas.common import Patient

logger = logging.getLogger(__name__)


class PatientLookup(Protocol):
    """Anything that can resolve a patient id."""

    def find_patient_by_id(self, patient_id: str) -> Patient | None: ...


class PatientDirectory:
    """In-memory patient lookup."""

    def __init__(self, patients: Iterable[Patient] = ()):
        self._patients: dict[str, Patient] = {}
        for patient in patients:
            self.add(patient)

    def add(self, patient: Patient) -> None:
        if patient.id in self._patients:
            logger.debug("Replacing patient %s", patient.id)
        self._patients[patient.id] = patient

    def find_patient_by_id(self, patient_id: str) -> Patient | None:
        return self._patients.get(patient_id)

    def __len__(self) -> int:
        return len(self._patients)
