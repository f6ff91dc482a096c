"""Application lifecycle handler."""

from structlog.stdlib import BoundLogger

from svc_config.settings import Settings
from svc_storage.database import DatabasePool

STATUS = {True: "enabled", False: "disabled"}


class Application:
    """Service application driven by the lifecycle runner."""

    def __init__(
        self,
        settings: Settings,
        logger: BoundLogger,
        pool: DatabasePool | None = None,
        version: str = "",
        build: str = "",
    ):
        self.settings = settings
        self.logger = logger
        self.pool = pool
        self.version = version
        self.build = build

    async def start(self) -> None:
        """Announce startup."""
        app = self.settings.app
        self.logger.info(
            "application_started",
            name=app.name,
            mode=app.env,
            debug=STATUS[app.debug],
            version=self.version,
            build=self.build,
        )

    async def stop(self) -> None:
        """Release the database pool."""
        if self.pool is not None:
            await self.pool.close()
        self.logger.info("application_stopped")
