"""Poisson scoreline model: expected goals -> win/draw/loss percentages.

Each side's goal count is an independent Poisson variable with the side's
expected goals as its mean. Every scoreline up to ``MAX_GOALS`` per side is
enumerated; the truncated tail is compensated by normalizing the three
outcome totals by their sum.
"""

import math
from dataclasses import dataclass

import numpy as np

# Omitted mass is < 0.1% for xG <= 3.5
MAX_GOALS = 8

# Preferred label when two or more outcomes share the maximum
TIE_BREAK_ORDER = ("draw", "home", "away")


@dataclass(frozen=True)
class OutcomeProbabilities:
    home_win: int
    draw: int
    away_win: int

    @property
    def predicted_winner(self) -> str:
        return pick_winner(self.home_win, self.draw, self.away_win)

    def as_dict(self) -> dict[str, int]:
        return {"home": self.home_win, "draw": self.draw, "away": self.away_win}


def _log_factorials(max_goals: int) -> np.ndarray:
    log_fact = np.zeros(max_goals + 1)
    for k in range(1, max_goals + 1):
        log_fact[k] = log_fact[k - 1] + math.log(k)
    return log_fact


def poisson_pmf(lam: float, max_goals: int = MAX_GOALS) -> np.ndarray:
    """P(X = k) for k in 0..max_goals, computed in log space.

    A non-positive rate is a point mass at zero goals.
    """
    if lam <= 0:
        pmf = np.zeros(max_goals + 1)
        pmf[0] = 1.0
        return pmf
    goals = np.arange(max_goals + 1)
    log_p = goals * math.log(lam) - lam - _log_factorials(max_goals)
    return np.exp(log_p)


def outcome_distribution(
    home_xg: float, away_xg: float, max_goals: int = MAX_GOALS
) -> tuple[float, float, float]:
    """Normalized (p_home, p_draw, p_away) summing to 1.0."""
    # joint[h, a] = P(home scores h) * P(away scores a)
    joint = np.outer(poisson_pmf(home_xg, max_goals), poisson_pmf(away_xg, max_goals))

    p_home = float(np.tril(joint, k=-1).sum())
    p_draw = float(np.trace(joint))
    p_away = float(np.triu(joint, k=1).sum())

    total = p_home + p_draw + p_away
    return p_home / total, p_draw / total, p_away / total


def match_probabilities(home_xg: float, away_xg: float) -> OutcomeProbabilities:
    """Integer percentages that always sum to exactly 100.

    Each share is rounded to the nearest percent and the rounding remainder
    goes to the largest share.
    """
    shares = outcome_distribution(home_xg, away_xg)
    rounded = [round(p * 100) for p in shares]

    remainder = 100 - sum(rounded)
    if remainder:
        labels = ("home", "draw", "away")
        idx = labels.index(pick_winner(*shares))
        rounded[idx] += remainder

    return OutcomeProbabilities(home_win=rounded[0], draw=rounded[1], away_win=rounded[2])


def pick_winner(home: float, draw: float, away: float) -> str:
    """Argmax label; ties go to draw, then home, then away."""
    values = {"home": home, "draw": draw, "away": away}
    best = max(values.values())
    return next(label for label in TIE_BREAK_ORDER if values[label] == best)
