"""Entry Point Tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from apps.service import main as entry
from svc_config.settings import Settings
from svc_env import bind, new_record

REQUIRED = "DATABASE_NAME=appdb\nDATABASE_USER_NAME=app\n"


def test_main_fails_fast_on_config_errors(clean_settings_env, tmp_path):
    """Test missing required settings exit with status 1."""
    clean_settings_env.chdir(tmp_path)

    with patch.object(entry, "serve", new=AsyncMock()) as serve:
        assert entry.main([]) == 1

    serve.assert_not_called()


def test_main_runs_service_with_env_files(clean_settings_env, write_env):
    """Test settings from --env-file reach the service."""
    base = write_env(REQUIRED + "APP_NAME=base\n", name="base.env")
    local = write_env("APP_NAME=local\n", name="local.env")

    with patch.object(entry, "serve", new=AsyncMock()) as serve:
        status = entry.main(["--env-file", str(base), "--env-file", str(local), "--build", "b1"])

    assert status == 0
    settings = serve.await_args.args[0]
    assert settings.app.name == "local"
    assert serve.await_args.kwargs["build"] == "b1"


def test_main_reports_service_failure(clean_settings_env, write_env):
    """Test startup failures exit with status 1."""
    path = write_env(REQUIRED)

    with patch.object(entry, "serve", new=AsyncMock(side_effect=OSError("refused"))):
        assert entry.main(["--env-file", str(path)]) == 1


@pytest.mark.asyncio
async def test_serve_wires_pool_application_and_runner(settings_source):
    """Test serve opens the pool and runs the application."""
    settings = bind(new_record(Settings), settings_source)
    pool = MagicMock()
    runner = MagicMock()
    runner.return_value.run = AsyncMock()

    with patch.object(entry, "create_pool", new=AsyncMock(return_value=pool)) as create_pool:
        with patch.object(entry, "Runner", runner):
            await entry.serve(settings, build="b1")

    config = create_pool.await_args.args[0]
    assert config.application_name == "svc-core"
    app = runner.call_args.args[0]
    assert app.pool is pool
    assert app.build == "b1"
    runner.return_value.run.assert_awaited_once()
