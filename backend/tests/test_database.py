import pytest

from smartfootball.config import ConfigurationError, Settings
from smartfootball.database import DatabasePool, StoreUnavailableError


def test_missing_database_url_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="DATABASE_URL"):
        DatabasePool.from_settings(Settings(_env_file=None, database_url=""))


class TestDatabasePool:
    @pytest.mark.asyncio
    async def test_engine_is_created_once_and_reused(self, pool):
        assert pool.engine is pool.engine
        await pool.ensure_alive()

    @pytest.mark.asyncio
    async def test_engine_is_recreated_after_dispose(self, pool):
        first = pool.engine
        await pool.dispose()
        await pool.ensure_alive()
        assert pool.engine is not first

    @pytest.mark.asyncio
    async def test_dead_engine_is_rebuilt(self, pool, monkeypatch):
        original_probe = pool._probe
        calls = []

        async def flaky_probe():
            calls.append(1)
            if len(calls) == 1:
                raise OSError("connection reset")
            await original_probe()

        monkeypatch.setattr(pool, "_probe", flaky_probe)
        first = pool.engine

        await pool.ensure_alive()

        assert len(calls) == 2
        assert pool.engine is not first

    @pytest.mark.asyncio
    async def test_unreachable_store(self, tmp_path):
        pool = DatabasePool(f"sqlite+aiosqlite:///{tmp_path / 'no-such-dir' / 'db.sqlite'}")
        try:
            with pytest.raises(StoreUnavailableError):
                await pool.ensure_alive()
        finally:
            await pool.dispose()
