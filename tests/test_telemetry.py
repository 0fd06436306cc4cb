import json

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from hms.core.config import settings
from hms.core.errors import DataCollectorError, TelemetryGatewayError
from hms.modules.telemetry import constants as const
from hms.modules.telemetry.collectors import DBMSDataCollector, DataCollector
from hms.modules.telemetry.gateway import TelemetryGatewayService
from hms.modules.telemetry.service import TelemetryService


def _gateway(handler) -> TelemetryGatewayService:
    return TelemetryGatewayService(
        base_url=" http://gateway.test ",
        path="/collect",
        transport=httpx.MockTransport(handler),
    )


async def test_gateway_accepts_literal_ok():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        return httpx.Response(200, text="OK")

    assert await _gateway(handler).send("payload") is True
    assert seen == {"url": "http://gateway.test/collect", "body": "payload"}


async def test_gateway_rejects_other_answers():
    gateway = _gateway(lambda request: httpx.Response(200, text="KO"))
    assert await gateway.send("payload") is False


async def test_gateway_requires_exact_ok_body():
    for body in ("OK\n", " OK", "ok"):
        gateway = _gateway(lambda request, body=body: httpx.Response(200, text=body))
        assert await gateway.send("payload") is False


async def test_gateway_http_error_is_a_service_failure():
    gateway = _gateway(lambda request: httpx.Response(503, text="OK"))
    with pytest.raises(TelemetryGatewayError):
        await gateway.send("payload")


async def test_gateway_transport_error_is_a_service_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TelemetryGatewayError):
        await _gateway(handler).send("payload")


async def test_dbms_collector_reads_driver_metadata(engine):
    collector = DBMSDataCollector(engine)
    assert isinstance(collector, DataCollector)
    assert collector.id == "FUN_DBMS"

    data = await collector.retrieve_data()

    assert data[const.DBMS_DRIVER_NAME] == "aiosqlite"
    assert data[const.DBMS_DRIVER_VERSION] != const.UNKNOWN
    assert data[const.DBMS_PRODUCT_NAME] == "sqlite"
    assert data[const.DBMS_PRODUCT_VERSION].count(".") >= 1


async def test_dbms_collector_wraps_connection_failures(tmp_path):
    broken = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/db.sqlite")
    try:
        with pytest.raises(DataCollectorError) as exc:
            await DBMSDataCollector(broken).retrieve_data()
        assert "FUN_DBMS" in str(exc.value)
    finally:
        await broken.dispose()


async def test_collect_and_send_posts_collected_json(engine, monkeypatch):
    monkeypatch.setattr(settings, "TELEMETRY_ENABLED", True)
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, text="OK")

    service = TelemetryService([DBMSDataCollector(engine)], _gateway(handler))
    assert await service.collect_and_send() is True
    assert bodies[0]["FUN_DBMS"][const.DBMS_PRODUCT_NAME] == "sqlite"


async def test_collect_and_send_is_off_when_disabled(engine, monkeypatch):
    monkeypatch.setattr(settings, "TELEMETRY_ENABLED", False)

    def handler(request):
        raise AssertionError("gateway must not be called")

    service = TelemetryService([DBMSDataCollector(engine)], _gateway(handler))
    assert await service.collect_and_send() is False
