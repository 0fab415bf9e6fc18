import re
from typing import Iterable, List

from pydicom.datadict import dictionary_VR
from pydicom.tag import Tag

from vetdicom.models import DicomWebSeries

MAX_UID_LENGTH = 64

# Numeric components separated by single dots, e.g. "1.2.840.10008.5.1.4.1.1.1"
UID_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)*")


def dicom_json_key(keyword: str) -> str:
    """Returns the DICOM JSON key ("GGGGEEEE") for a data dictionary keyword."""
    tag = Tag(keyword)
    return f"{tag.group:04X}{tag.element:04X}"


SERIES_INSTANCE_UID_KEY = dicom_json_key("SeriesInstanceUID")
UID_VR = dictionary_VR(Tag("SeriesInstanceUID"))


def is_valid_study_instance_uid(uid) -> bool:
    """
    Validates a Study Instance UID against the DICOM PS3.5 UID format.

    A UID is at most 64 characters of digits and dots, starts and ends with a
    digit and has no consecutive dots.

    >>> is_valid_study_instance_uid("1.2.840.113619.2.55.3.123456789.001")
    True
    >>> is_valid_study_instance_uid("..1.2.3")
    False
    """
    if not uid or not isinstance(uid, str):
        return False

    if len(uid) > MAX_UID_LENGTH:
        return False

    return UID_PATTERN.fullmatch(uid) is not None


def sanitize_uid_for_logging(uid: str) -> str:
    """Shortens a UID to its first three components and last component for logs."""
    if not uid or not isinstance(uid, str) or len(uid) < 20:
        return "***"

    parts = uid.split(".")
    if len(parts) < 3:
        return "***"

    return f"{'.'.join(parts[:3])}...{parts[-1]}"


def extract_series_uids(series: Iterable[DicomWebSeries]) -> List[str]:
    """Extracts SeriesInstanceUIDs from DICOM JSON series, skipping malformed entries"""
    series_uids = []
    for entry in series:
        element = entry.get(SERIES_INSTANCE_UID_KEY)
        if element is None or not element.value:
            continue

        series_uid = element.value[0]
        if isinstance(series_uid, str):
            series_uids.append(series_uid)

    return series_uids
