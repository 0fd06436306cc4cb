import logging
import httpx
from hms.core.config import settings
from hms.core.errors import TelemetryGatewayError

log = logging.getLogger("telemetry.gateway")

RESPONSE_SUCCESS = "OK"

class TelemetryGatewayService:
    """Posts a telemetry payload to the remote gateway; the gateway answers a literal OK when it accepted it."""

    def __init__(self,
                 base_url: str | None = None,
                 path: str | None = None,
                 timeout: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = (base_url or settings.TELEMETRY_GATEWAY_BASE_URL).strip()
        self.path = path or settings.TELEMETRY_GATEWAY_PATH
        self.timeout = timeout if timeout is not None else settings.TELEMETRY_TIMEOUT_SECONDS
        self.transport = transport

    def _build_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def send(self, data: str) -> bool:
        log.debug(data)
        async with self._build_http_client() as client:
            try:
                resp = await client.post(self.path, content=data, headers={"content-type": "text/plain"})
                resp.raise_for_status()
            except httpx.HTTPError as e:
                log.error(f"Telemetry gateway request to {self.base_url} failed: {e!r}")
                raise TelemetryGatewayError("Telemetry gateway unavailable") from e
        log.debug(resp.text)
        return resp.text == RESPONSE_SUCCESS
