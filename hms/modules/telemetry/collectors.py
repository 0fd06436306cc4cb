import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Protocol, runtime_checkable
from sqlalchemy.ext.asyncio import AsyncEngine
from hms.core.errors import DataCollectorError
from hms.modules.telemetry import constants as const

log = logging.getLogger("telemetry.collectors")

@runtime_checkable
class DataCollector(Protocol):
    id: str
    description: str

    async def retrieve_data(self) -> dict[str, str]: ...


def _driver_version(driver: str) -> str:
    try:
        return version(driver)
    except PackageNotFoundError:
        return const.UNKNOWN


class DBMSDataCollector:
    id = "FUN_DBMS"
    description = "DBMS information (ex. MySQL 5.0)"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def retrieve_data(self) -> dict[str, str]:
        log.debug("Collecting DBMS data...")
        try:
            async with self.engine.connect() as conn:
                dialect = conn.dialect
                server_version = dialect.server_version_info or ()
                return {
                    const.DBMS_DRIVER_NAME: dialect.driver,
                    const.DBMS_DRIVER_VERSION: _driver_version(dialect.driver),
                    const.DBMS_PRODUCT_NAME: dialect.name,
                    const.DBMS_PRODUCT_VERSION: ".".join(str(p) for p in server_version) or const.UNKNOWN,
                }
        except Exception as e:
            log.error(f"Something went wrong with {self.id}: {e!r}")
            raise DataCollectorError(f"Data collector [{self.id}]") from e
