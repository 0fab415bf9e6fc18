"""
Loads a sample DICOM instance into a local Orthanc server.

The instance is read from a local file or downloaded from the public
UCLouvain Orthanc demo, checked with pydicom, uploaded to ``/instances`` and
the StudyInstanceUID of its parent study is returned so the API can be tried
against it.
"""

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import pydicom
from pydicom.errors import InvalidDicomError

from vetdicom.config import get_settings

logger = logging.getLogger(__name__)

DEMO_ORTHANC_URL = "https://orthanc.uclouvain.be/demo"
SAMPLE_INSTANCE_ID = "001a7d82-54008387-7b23ad57-8fb6202a-6d3b305b"
UPLOAD_TIMEOUT_SECONDS = 30.0


class SampleDataError(Exception):
    pass


def is_valid_dicom(content: bytes) -> bool:
    try:
        pydicom.dcmread(io.BytesIO(content), stop_before_pixels=True)
        return True
    except (InvalidDicomError, OSError, EOFError):
        return False


def download_sample(client: httpx.Client, instance_id: str = SAMPLE_INSTANCE_ID) -> bytes:
    response = client.get(f"{DEMO_ORTHANC_URL}/instances/{instance_id}/file")
    if not response.is_success:
        raise SampleDataError(f"Download failed: {response.status_code}")
    return response.content


def upload_instance(client: httpx.Client, orthanc_url: str, content: bytes) -> Dict[str, Any]:
    """Stores one DICOM instance and returns Orthanc's upload summary"""
    response = client.post(
        f"{orthanc_url}/instances",
        content=content,
        headers={"Content-Type": "application/dicom"},
    )
    if not response.is_success:
        raise SampleDataError(f"Upload failed: {response.status_code}")

    result = response.json()
    if result.get("Status") not in ("Success", "AlreadyStored"):
        raise SampleDataError(f"Upload rejected: {result}")
    return result


def get_study_instance_uid(client: httpx.Client, orthanc_url: str, study_id: str) -> str:
    response = client.get(f"{orthanc_url}/studies/{study_id}")
    if not response.is_success:
        raise SampleDataError(f"Study lookup failed: {response.status_code}")

    study_uid = response.json().get("MainDicomTags", {}).get("StudyInstanceUID")
    if not isinstance(study_uid, str):
        raise SampleDataError(f"Study {study_id} has no StudyInstanceUID")
    return study_uid


def upload_sample_data(
    orthanc_url: str,
    dicom_file: Optional[Path] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> str:
    """
    Uploads a DICOM instance to Orthanc.

    Args:
        orthanc_url: Base URL of the target Orthanc server.
        dicom_file: Local DICOM file; the demo sample is downloaded if omitted.
        transport: Optional httpx transport, used to stub the servers in tests.

    Returns:
        The StudyInstanceUID of the study holding the uploaded instance.
    """
    orthanc_url = orthanc_url.rstrip("/")

    try:
        with httpx.Client(timeout=UPLOAD_TIMEOUT_SECONDS, transport=transport) as client:
            if dicom_file is not None:
                content = Path(dicom_file).read_bytes()
            else:
                logger.info("Downloading sample instance %s", SAMPLE_INSTANCE_ID)
                content = download_sample(client)

            if not is_valid_dicom(content):
                raise SampleDataError("The sample file is not a valid DICOM file")

            logger.info("Uploading %d bytes to %s", len(content), orthanc_url)
            result = upload_instance(client, orthanc_url, content)
            study_id = result.get("ParentStudy")
            if not study_id:
                raise SampleDataError(f"Upload response has no ParentStudy: {result}")
            return get_study_instance_uid(client, orthanc_url, study_id)

    except httpx.HTTPError as e:
        raise SampleDataError(f"Orthanc is not accessible at {orthanc_url}: {str(e)}") from e
    except ValueError as e:
        raise SampleDataError(f"Invalid response from Orthanc: {str(e)}") from e


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Upload sample DICOM data to Orthanc.")
    parser.add_argument(
        "--file", type=Path, help="DICOM file to upload (default: download the demo sample)"
    )
    parser.add_argument(
        "--orthanc-url",
        default=None,
        help="Orthanc base URL (default: ORTHANC_URL or http://localhost:8042)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    orthanc_url = args.orthanc_url or get_settings().orthanc_url

    try:
        study_uid = upload_sample_data(orthanc_url, args.file)
    except (SampleDataError, OSError) as e:
        logger.error("%s", e)
        return 1

    print(f"StudyInstanceUID: {study_uid}")
    print(f"Try: curl http://localhost:{get_settings().port}/api/case-bundle/{study_uid}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
