"""
Patient record storage.

Routes depend on the ``RecordStore`` protocol only. ``InMemoryRecordStore``
serves the sample veterinary cases below; a database-backed store can be
swapped in through the FastAPI dependency in ``vetdicom.main``.
"""

from typing import Dict, Iterable, Optional, Protocol

from vetdicom.models import CaseBundle


class RecordStore(Protocol):
    def find_by_study_uid(self, study_instance_uid: str) -> Optional[CaseBundle]:
        ...


SAMPLE_CASES = [
    {
        "studyInstanceUid": "1.3.6.1.4.1.14519.5.2.1.2193.7172.847236098565581057121195872945",
        "patient": {
            "id": "P004",
            "name": "Luna",
            "species": "Canine",
            "breed": "Mixed Breed",
            "ageYears": 3,
            "weightKg": 18.7,
            "sex": "FS",
        },
        "history": "Routine chest radiographs for pre-anesthetic screening. No clinical signs.",
        "labResults": {},
        "imaging": {
            "studyInstanceUid": "1.3.6.1.4.1.14519.5.2.1.2193.7172.847236098565581057121195872945",
            "series": [],
            "sedationProtocol": "None required (conscious radiographs)",
        },
    },
    {
        "studyInstanceUid": "1.2.826.0.1.3680043.8.1055.1.20111103111148288.98361414.79379639",
        "patient": {
            "id": "P001",
            "name": "Fluffy",
            "species": "Feline",
            "breed": "Domestic Shorthair",
            "ageYears": 10,
            "weightKg": 4.2,
            "sex": "FS",
        },
        "history": "Straining to urinate, suspected UTI. Owner reports vocalizing when using litter box.",
        "labResults": {"urinalysis": {"culture": "E. coli", "result": "Positive"}},
        "imaging": {
            "studyInstanceUid": "1.2.826.0.1.3680043.8.1055.1.20111103111148288.98361414.79379639",
            "series": [],
            "sedationProtocol": "Dexmedetomidine 5 mcg/kg IM",
        },
    },
    {
        "studyInstanceUid": "123",
        "patient": {
            "id": "P002",
            "name": "Max",
            "species": "Canine",
            "breed": "Golden Retriever",
            "ageYears": 5,
            "weightKg": 32.5,
            "sex": "M",
        },
        "history": "Limping on right hind leg for 3 days. No known trauma. Possible CCL tear (common in breed).",
        "labResults": {},
        "imaging": {
            "studyInstanceUid": "123",
            "series": ["SERIES_UID_1", "SERIES_UID_2"],
            "sedationProtocol": "Propofol 6 mg/kg IV for positioning",
        },
    },
    {
        "studyInstanceUid": "2.16.840.1.113669.632.20.1211.10000357775",
        "patient": {
            "id": "P003",
            "name": "Buddy",
            "species": "Canine",
            "breed": "Labrador Retriever",
            "ageYears": 7,
            "weightKg": 28.3,
            "sex": "M",
        },
        "history": "Persistent cough for 2 weeks, exercise intolerance. Rule out cardiac disease vs respiratory pathology.",
        "labResults": {},
        "imaging": {
            "studyInstanceUid": "2.16.840.1.113669.632.20.1211.10000357775",
            # Placeholder series until the archive answers
            "series": [
                "1.3.46.670589.11.0.0.11.4.2.0.8743.5.5396.2006120114285654497",
                "1.3.46.670589.11.0.0.11.4.2.0.8743.5.5396.2006120114314125550",
                "1.3.46.670589.11.0.0.11.4.2.0.8743.5.5396.2006120114262848496",
            ],
            "sedationProtocol": "None (cooperative patient, conscious radiographs)",
        },
    },
]


class InMemoryRecordStore:
    """Record store backed by a dict keyed by StudyInstanceUID."""

    def __init__(self, cases: Optional[Iterable[CaseBundle]] = None):
        if cases is None:
            cases = [CaseBundle.model_validate(case) for case in SAMPLE_CASES]
        self._cases: Dict[str, CaseBundle] = {
            case.study_instance_uid: case for case in cases
        }

    def find_by_study_uid(self, study_instance_uid: str) -> Optional[CaseBundle]:
        case = self._cases.get(study_instance_uid)
        # Callers enrich the returned bundle; the stored one stays untouched
        return case.model_copy(deep=True) if case is not None else None
