import json
import logging
from hms.core.config import settings
from hms.modules.telemetry.collectors import DataCollector
from hms.modules.telemetry.gateway import TelemetryGatewayService

log = logging.getLogger("telemetry.service")

class TelemetryService:
    def __init__(self, collectors: list[DataCollector], gateway: TelemetryGatewayService):
        self.collectors = collectors
        self.gateway = gateway

    async def collect(self) -> dict[str, dict[str, str]]:
        """Run every collector in registration order; a failing collector aborts the run."""
        data: dict[str, dict[str, str]] = {}
        for collector in self.collectors:
            data[collector.id] = await collector.retrieve_data()
        return data

    async def collect_and_send(self) -> bool:
        if not settings.TELEMETRY_ENABLED:
            log.info("Telemetry disabled, nothing sent")
            return False
        payload = json.dumps(await self.collect(), separators=(",", ":"), sort_keys=True)
        sent = await self.gateway.send(payload)
        if not sent:
            log.warning("Telemetry gateway did not acknowledge the payload")
        return sent
