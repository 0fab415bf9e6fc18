"""
Client for Orthanc archive servers.

Series are looked up through the Orthanc REST API in two steps:

1. ``POST /tools/find`` resolves the StudyInstanceUID to Orthanc study IDs.
2. ``GET /studies/{id}/series`` lists the series of the first match.

The result is translated to DICOM JSON so callers see the same format a
DICOMweb QIDO-RS query would return. A primary and a fallback server are
tried in order; each request is bounded by the configured timeout.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

import httpx

from vetdicom.config import DEFAULT_TIMEOUT_SECONDS, FALLBACK_ORTHANC_URL, Settings
from vetdicom.models import DicomWebSeries, TaggedValue
from vetdicom.utils import (
    SERIES_INSTANCE_UID_KEY,
    UID_VR,
    extract_series_uids,
    sanitize_uid_for_logging,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    series: Tuple[DicomWebSeries, ...]


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Unavailable:
    reason: str


ArchiveQueryOutcome = Union[Found, NotFound, Unavailable]


def series_to_dicom_json(descriptor: Any) -> DicomWebSeries:
    """Converts an Orthanc series object to a DICOM JSON dataset.

    Descriptors without a string MainDicomTags.SeriesInstanceUID yield an
    empty dataset.
    """
    main_tags = descriptor.get("MainDicomTags") if isinstance(descriptor, dict) else None
    if not isinstance(main_tags, dict) or not isinstance(
        main_tags.get("SeriesInstanceUID"), str
    ):
        return {}

    return {
        SERIES_INSTANCE_UID_KEY: TaggedValue(
            vr=UID_VR, value=[main_tags["SeriesInstanceUID"]]
        )
    }


class OrthancService:
    """Fetches study series from a primary Orthanc server with one fallback."""

    def __init__(
        self,
        primary_url: str,
        fallback_url: str = FALLBACK_ORTHANC_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.primary_url = primary_url.rstrip("/")
        self.fallback_url = fallback_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "OrthancService":
        return cls(
            primary_url=settings.orthanc_url,
            fallback_url=settings.orthanc_fallback_url,
            timeout=settings.orthanc_timeout,
        )

    async def fetch_study_series(
        self, study_instance_uid: str
    ) -> Optional[List[DicomWebSeries]]:
        """
        Fetches the series of a study, falling back to the secondary server.

        Returns the DICOM JSON series list of the first server that answers.
        A study unknown to that server is returned as an empty list. Returns
        None only when every server is unavailable.
        """
        servers = (("primary", self.primary_url), ("fallback", self.fallback_url))

        for label, base_url in servers:
            outcome = await self.query_study_series(base_url, study_instance_uid)
            if isinstance(outcome, Unavailable):
                logger.warning(
                    "%s server %s unavailable: %s", label.capitalize(), base_url, outcome.reason
                )
                continue

            logger.info("Fetched from %s server: %s", label, base_url)
            if isinstance(outcome, Found):
                return list(outcome.series)
            return []

        logger.error(
            "All DICOM servers unavailable for study %s",
            sanitize_uid_for_logging(study_instance_uid),
        )
        return None

    async def query_study_series(
        self,
        base_url: str,
        study_instance_uid: str,
        timeout: Optional[float] = None,
    ) -> ArchiveQueryOutcome:
        """Runs the find-study and list-series requests against one server."""
        timeout = self.timeout if timeout is None else timeout
        base_url = base_url.rstrip("/")

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                find_response = await asyncio.wait_for(
                    client.post(
                        f"{base_url}/tools/find",
                        json={
                            "Level": "Study",
                            "Query": {"StudyInstanceUID": study_instance_uid},
                        },
                    ),
                    timeout,
                )
                if not find_response.is_success:
                    return Unavailable(f"Find study failed: {find_response.status_code}")

                study_ids = find_response.json()
                if not isinstance(study_ids, list):
                    return Unavailable("Find study returned an unexpected payload")
                if not study_ids:
                    logger.info(
                        "Study %s not found on %s",
                        sanitize_uid_for_logging(study_instance_uid),
                        base_url,
                    )
                    return NotFound()

                series_response = await asyncio.wait_for(
                    client.get(f"{base_url}/studies/{study_ids[0]}/series"), timeout
                )
                if not series_response.is_success:
                    return Unavailable(f"Get series failed: {series_response.status_code}")

                series_objects = series_response.json()
                if not isinstance(series_objects, list):
                    return Unavailable("Get series returned an unexpected payload")

        except asyncio.TimeoutError:
            return Unavailable(f"Timed out after {timeout}s")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return Unavailable(f"Fetch error: {str(e) or type(e).__name__}")
        except ValueError as e:
            return Unavailable(f"Invalid JSON from server: {str(e)}")

        return Found(tuple(series_to_dicom_json(series) for series in series_objects))

    def extract_series_uids(self, series: List[DicomWebSeries]) -> List[str]:
        return extract_series_uids(series)
