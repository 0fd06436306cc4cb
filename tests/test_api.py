import io

import httpx
import pytest
from PIL import Image

from hms.core.db import get_session
from hms.main import app
from hms.modules.history.models import Bill, Visit
from hms.modules.telemetry.collectors import DBMSDataCollector
from hms.modules.telemetry.gateway import TelemetryGatewayService
from hms.modules.telemetry.router import get_telemetry_service
from hms.modules.telemetry.service import TelemetryService

PREFIX = "/api/v1"


@pytest.fixture
async def client(engine, session_factory):
    async def override_session():
        async with session_factory() as s:
            yield s

    def override_telemetry():
        gateway = TelemetryGatewayService(
            base_url="http://gateway.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="OK")),
        )
        return TelemetryService([DBMSDataCollector(engine)], gateway)

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_telemetry_service] = override_telemetry
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _create(client, first, second, **extra):
    resp = await client.post(f"{PREFIX}/patients", json={"first_name": first, "second_name": second, "sex": "F", **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_health(client):
    resp = await client.get(f"{PREFIX}/health")
    assert resp.json() == {"status": "ok"}


async def test_patient_crud_roundtrip(client):
    created = await _create(client, "Anna", "Bianchi", age=33)
    code = created["code"]
    assert created["name"] == "Anna Bianchi"

    resp = await client.get(f"{PREFIX}/patients/{code}")
    assert resp.status_code == 200
    assert resp.json()["has_photo"] is False

    resp = await client.patch(f"{PREFIX}/patients/{code}", json={"city": "Roma"})
    assert resp.json()["city"] == "Roma"

    resp = await client.get(f"{PREFIX}/patients/search", params={"name": "Anna Bianchi"})
    assert resp.json()["code"] == code

    assert (await client.get(f"{PREFIX}/patients/next-code")).json() == {"code": code + 1}

    resp = await client.delete(f"{PREFIX}/patients/{code}")
    assert resp.status_code == 204
    assert (await client.get(f"{PREFIX}/patients/{code}")).status_code == 404

    resp = await client.get(f"{PREFIX}/patients/{code}", params={"include_deleted": True})
    assert resp.status_code == 200
    assert (await client.get(f"{PREFIX}/patients/{code}/exists")).json() == {"present": True}
    assert (await client.get(f"{PREFIX}/patients/name-exists", params={"name": "Anna Bianchi"})).json() == {"present": True}


async def test_create_rejects_bad_sex(client):
    resp = await client.post(f"{PREFIX}/patients", json={"first_name": "A", "second_name": "B", "sex": "X"})
    assert resp.status_code == 422


async def test_merge_endpoint_reports_per_category_rows(client, session_factory):
    survivor = await _create(client, "Jane", "Doe")
    obsolete = await _create(client, "J", "Doe")
    async with session_factory() as s:
        s.add_all([
            Bill(patient_code=obsolete["code"], patient_name="J Doe"),
            Bill(patient_code=obsolete["code"], patient_name="J Doe"),
            Visit(patient_code=obsolete["code"]),
        ])
        await s.commit()

    resp = await client.post(
        f"{PREFIX}/patients/{survivor['code']}/merge",
        json={"obsolete_code": obsolete["code"]},
    )
    body = resp.json()

    assert resp.status_code == 200
    assert body["merged"] is True
    assert body["total"] == 3
    assert body["obsolete_deleted"] is True
    assert body["rows"]["billing"] == 2
    assert body["rows"]["visit"] == 1
    assert body["rows"]["admission"] == 0
    assert list(body["rows"]) == [
        "admission", "examination", "laboratory", "outpatient", "billing",
        "medical_stock", "therapy", "visit", "vaccine",
    ]
    assert (await client.get(f"{PREFIX}/patients/{obsolete['code']}")).status_code == 404


async def test_merge_errors_map_to_status_codes(client):
    patient = await _create(client, "Jane", "Doe")

    resp = await client.post(f"{PREFIX}/patients/{patient['code']}/merge", json={"obsolete_code": patient["code"]})
    assert resp.status_code == 409
    assert "itself" in resp.json()["message"]

    resp = await client.post(f"{PREFIX}/patients/{patient['code']}/merge", json={"obsolete_code": 999})
    assert resp.status_code == 404


async def test_photo_upload_and_download(client):
    patient = await _create(client, "Jane", "Doe")
    buf = io.BytesIO()
    Image.new("RGB", (5, 5), color=(0, 128, 0)).save(buf, format="PNG")

    url = f"{PREFIX}/patients/{patient['code']}/photo"
    assert (await client.get(url)).status_code == 404

    resp = await client.put(url, files={"file": ("face.png", buf.getvalue(), "image/png")})
    assert resp.status_code == 204

    resp = await client.get(url)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/jpeg"
    assert resp.content[:2] == b"\xff\xd8"
    assert (await client.get(f"{PREFIX}/patients/{patient['code']}")).json()["has_photo"] is True

    resp = await client.put(url, files={"file": ("face.png", b"garbage", "image/png")})
    assert resp.status_code == 422


async def test_telemetry_endpoints(client, monkeypatch):
    from hms.core.config import settings
    monkeypatch.setattr(settings, "TELEMETRY_ENABLED", True)

    resp = await client.get(f"{PREFIX}/telemetry/collect")
    assert resp.json()["FUN_DBMS"]["dbms_product_name"] == "sqlite"

    resp = await client.post(f"{PREFIX}/telemetry/send")
    assert resp.json() == {"sent": True}


async def test_oversized_and_bomb_photos_are_rejected(client, monkeypatch):
    from hms.core.config import settings
    patient = await _create(client, "Jane", "Doe")
    url = f"{PREFIX}/patients/{patient['code']}/photo"
    buf = io.BytesIO()
    Image.new("L", (64, 64)).save(buf, format="PNG")
    png = buf.getvalue()

    monkeypatch.setattr(settings, "PHOTO_MAX_BYTES", len(png) - 1)
    resp = await client.put(url, files={"file": ("face.png", png, "image/png")})
    assert resp.status_code == 422
    monkeypatch.undo()

    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    resp = await client.put(url, files={"file": ("face.png", png, "image/png")})
    assert resp.status_code == 422

    assert (await client.get(url)).status_code == 404


async def test_patch_null_clears_optional_fields_only(client):
    patient = await _create(client, "Anna", "Bianchi", city="Roma", note="follow-up")
    url = f"{PREFIX}/patients/{patient['code']}"

    resp = await client.patch(url, json={"note": None, "first_name": None})
    assert resp.status_code == 200
    body = resp.json()
    assert body["note"] is None
    assert body["city"] == "Roma"
    assert body["first_name"] == "Anna"
