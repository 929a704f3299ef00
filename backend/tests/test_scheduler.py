import pytest

from smartfootball.jobs import scheduler as scheduler_module
from smartfootball.jobs.scheduler import hourly_job, scheduler, setup_scheduler
from smartfootball.schemas.runs import HourlyRunResponse, RunStep


@pytest.mark.asyncio
async def test_hourly_job_is_registered(pool, test_settings):
    setup_scheduler(pool, test_settings)
    try:
        job = scheduler.get_job("hourly")
        assert job is not None
        assert job.args == (pool, test_settings)
        assert str(job.trigger.fields[job.trigger.FIELD_NAMES.index("minute")]) == "0"
    finally:
        scheduler.remove_job("hourly")


@pytest.mark.asyncio
async def test_hourly_job_logs_failed_steps(pool, test_settings, monkeypatch, caplog):
    async def fake_run_hourly(pool, settings):
        return HourlyRunResponse(
            steps=[
                RunStep(step="generatePredictions", status=500, error="OPENAI_API_KEY"),
                RunStep(step="resolvePredictions", status=200, resolved=0),
            ]
        )

    monkeypatch.setattr(scheduler_module, "run_hourly", fake_run_hourly)

    with caplog.at_level("INFO", logger="smartfootball.jobs.scheduler"):
        await hourly_job(pool, test_settings)

    assert "Hourly step generatePredictions failed: OPENAI_API_KEY" in caplog.text
    assert "Hourly step resolvePredictions completed" in caplog.text
