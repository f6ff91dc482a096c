"""
Svc-Core Service Entry Point.

Startup sequence:
1. Bind settings from .env files and the process environment
2. Configure structured logging from LOG_* settings
3. Open the database pool
4. Run the application until SIGINT/SIGTERM

Usage: python -m apps.service --env-file .env --env-file .env.local
"""

import argparse
import asyncio
import sys

from apps import __version__
from apps.service.app import Application
from apps.service.runner import Runner
from svc_config.settings import Settings, load_settings
from svc_env import ConfigError
from svc_obs.logging import get_logger, setup_logging
from svc_storage.database import PoolConfig, PoolConfigError, create_pool

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="svc-core")
    parser.add_argument(
        "--env-file",
        action="append",
        dest="env_files",
        help="Override file, repeatable; later files win (default: .env)",
    )
    parser.add_argument("--build", default="dev", help="Build identifier to report")
    return parser.parse_args(argv)


async def serve(settings: Settings, build: str = "dev") -> None:
    """Open resources and run the application until shutdown."""
    pool = await create_pool(
        PoolConfig.from_settings(settings.database, application_name=settings.app.name)
    )

    app = Application(
        settings,
        get_logger("svc.app"),
        pool=pool,
        version=__version__,
        build=build,
    )
    await Runner(app).run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point; returns the process exit status."""
    args = parse_args(argv)

    try:
        settings = load_settings(*(args.env_files or []))
    except ConfigError as e:
        logger.error("config_load_failed", error=str(e))
        return 1

    setup_logging(
        level=settings.log.level,
        fmt=settings.log.format,
        time_format=settings.log.time_format,
    )
    logger.debug("config_loaded", config=settings.model_dump(mode="json"))

    try:
        asyncio.run(serve(settings, build=args.build))
    except PoolConfigError as e:
        logger.error("database_config_invalid", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("service_interrupted")
    except Exception as e:
        logger.error("service_failed", error=str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
