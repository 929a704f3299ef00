from pydantic import BaseModel


class AccuracyTotals(BaseModel):
    total: int
    correct: int
    accuracy_pct: float


class WeeklyAccuracyPoint(BaseModel):
    week: str
    total: int
    correct: int
    accuracy_pct: float


class CompetitionAccuracyItem(BaseModel):
    competition: str
    total: int
    correct: int
    accuracy_pct: float


class AccuracyOverviewResponse(BaseModel):
    overall: AccuracyTotals
    weekly_trend: list[WeeklyAccuracyPoint]
    by_competition: list[CompetitionAccuracyItem]
