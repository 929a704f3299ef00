from datetime import datetime

from pydantic import BaseModel, Field

from smartfootball.utils.timeutils import utcnow


class GeneratedMatch(BaseModel):
    fixture_id: int
    match: str
    winner: str
    home_win_probability: int
    draw_probability: int
    away_win_probability: int
    confidence: int


class GenerationSummary(BaseModel):
    success: bool = True
    generated: int = 0
    skipped: int = 0
    results: list[GeneratedMatch] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class ResolutionSummary(BaseModel):
    success: bool = True
    resolved: int = 0
    correct: int = 0
    pending: int = 0
    failed: int = 0
    current_week_accuracy: float | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class RunStep(BaseModel):
    step: str
    status: int
    generated: int | None = None
    resolved: int | None = None
    error: str | None = None


class HourlyRunResponse(BaseModel):
    success: bool = True
    steps: list[RunStep]
    timestamp: datetime = Field(default_factory=utcnow)
