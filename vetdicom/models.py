"""
Data models for the veterinary DICOM API.

This module defines Pydantic models for the case bundles served by the API
and for the DICOM JSON (PS3.18) envelope used to return series metadata.
Field names are snake_case in Python and camelCase on the wire.
"""

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaggedValue(BaseModel):
    """
    One attribute of a DICOM JSON dataset.

    Attributes:
        vr (str): Value Representation - the DICOM data type of the attribute.
        value (list): The attribute value(s), serialized as ``Value``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    vr: Optional[str] = Field(None, description="Value Representation (DICOM data type)")
    value: Optional[List[Any]] = Field(
        None, alias="Value", description="Value(s) of the DICOM attribute"
    )


# Keys are tags in "GGGGEEEE" form, e.g. "0020000E" for SeriesInstanceUID
DicomWebSeries = Dict[str, TaggedValue]


class Patient(CamelModel):
    """
    Patient demographics.

    Attributes:
        species (str): Canine, Feline, Equine, Avian, ...
        weight_kg (float): Body weight, used for mg/kg dosing.
        sex (str): M/F/FS/MN (intact vs spayed/neutered).
    """

    id: str
    name: str
    species: str
    breed: Optional[str] = None
    age_years: float
    weight_kg: Optional[float] = None
    sex: str


class UrinalysisResult(CamelModel):
    culture: str
    result: str


class LabResults(CamelModel):
    urinalysis: Optional[UrinalysisResult] = None


class Imaging(CamelModel):
    study_instance_uid: str
    series: List[str] = Field(
        default_factory=list, description="SeriesInstanceUIDs of the study"
    )
    sedation_protocol: Optional[str] = None


class CaseBundle(CamelModel):
    """
    A patient record combined with the imaging series of one study.

    Patient, history and lab results come from the record store; the series
    list is refreshed from the archive server when it is reachable.
    """

    study_instance_uid: str
    patient: Patient
    history: str
    lab_results: LabResults = Field(default_factory=LabResults)
    imaging: Imaging


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint. Messages are generic."""

    error: str = Field(..., description="Human-readable error message")
