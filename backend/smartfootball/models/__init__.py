from smartfootball.models.base import Base
from smartfootball.models.fixture import Fixture
from smartfootball.models.prediction import Prediction
from smartfootball.models.accuracy import AccuracyRecord

__all__ = [
    "Base",
    "Fixture",
    "Prediction",
    "AccuracyRecord",
]
