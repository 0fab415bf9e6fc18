import hashlib
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from vetdicom.main import app, get_orthanc_service
from vetdicom.orthanc import OrthancService

PRIMARY_URL = "http://primary.test:8042"
FALLBACK_URL = "http://fallback.test:8042"


def orthanc_study_id(study_instance_uid: str) -> str:
    return hashlib.sha1(study_instance_uid.encode()).hexdigest()[:8]


class FakeOrthanc:
    """Answers /tools/find and /studies/{id}/series like an Orthanc server."""

    def __init__(self):
        self.studies = {}  # StudyInstanceUID -> SeriesInstanceUIDs
        self.status_code = 200
        self.reachable = True
        self.requests = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.reachable:
            raise httpx.ConnectError("Connection refused", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"Message": "Internal error"})

        if request.method == "POST" and request.url.path == "/tools/find":
            uid = json.loads(request.content)["Query"]["StudyInstanceUID"]
            matches = [orthanc_study_id(uid)] if uid in self.studies else []
            return httpx.Response(200, json=matches)

        if request.method == "GET" and request.url.path.startswith("/studies/"):
            study_id = request.url.path.split("/")[2]
            for uid, series_uids in self.studies.items():
                if orthanc_study_id(uid) == study_id:
                    return httpx.Response(
                        200,
                        json=[
                            {"ID": f"series-{n}", "MainDicomTags": {"SeriesInstanceUID": s}}
                            for n, s in enumerate(series_uids)
                        ],
                    )

        return httpx.Response(404, json={"Message": "Unknown resource"})


@pytest.fixture
def primary():
    return FakeOrthanc()


@pytest.fixture
def fallback():
    return FakeOrthanc()


@pytest.fixture
def orthanc_service(primary, fallback):
    servers = {"primary.test": primary, "fallback.test": fallback}
    transport = httpx.MockTransport(lambda request: servers[request.url.host].handle(request))
    return OrthancService(PRIMARY_URL, FALLBACK_URL, timeout=1.0, transport=transport)


@pytest.fixture
def client(orthanc_service):
    app.dependency_overrides[get_orthanc_service] = lambda: orthanc_service
    yield TestClient(app)
    app.dependency_overrides.clear()
