"""
PrepForge - Progress Aggregator.

Computes a user's dashboard statistics from their round sessions and
simulations. Everything here is a read; nothing is cached or written.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional

from src.core.domain.models import PROBLEM_KINDS, RoundSession, SimulationStatus
from src.infra.persistence.repository import RoundSessionRepository, SimulationRepository

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


@dataclass
class TypePerformance:
    attempted: int = 0
    completed: int = 0
    average_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "completed": self.completed,
            "averageScore": round(self.average_score, 1),
        }


@dataclass
class WeeklyStats:
    sessions_attempted: int = 0
    sessions_completed: int = 0
    average_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionsAttempted": self.sessions_attempted,
            "sessionsCompleted": self.sessions_completed,
            "averageScore": round(self.average_score, 1),
        }


@dataclass
class UserStats:
    """Dashboard statistics for one user."""

    total_sessions: int = 0
    completed_sessions: int = 0
    completion_rate: float = 0.0  # Percent
    average_score: float = 0.0
    total_problems: int = 0
    weekly: WeeklyStats = field(default_factory=WeeklyStats)
    performance_by_type: dict[str, TypePerformance] = field(default_factory=dict)
    problems_by_type: dict[str, int] = field(default_factory=dict)
    problems_by_difficulty: dict[str, int] = field(default_factory=dict)
    simulations_active: int = 0
    simulations_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSessions": self.total_sessions,
            "completedSessions": self.completed_sessions,
            "completionRate": round(self.completion_rate, 1),
            "averageScore": round(self.average_score, 1),
            "totalProblems": self.total_problems,
            "weeklyStats": self.weekly.to_dict(),
            "performanceByType": {k: v.to_dict() for k, v in self.performance_by_type.items()},
            "problemsByType": dict(self.problems_by_type),
            "problemsByDifficulty": dict(self.problems_by_difficulty),
            "simulations": {
                "active": self.simulations_active,
                "completed": self.simulations_completed,
            },
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
        }


# -----------------------------------------------------------------------------
# Calculations
# -----------------------------------------------------------------------------

def average_score(sessions: list[RoundSession]) -> float:
    """Mean total score of completed sessions that have one."""
    scores = [s.total_score for s in sessions if s.is_completed and s.total_score is not None]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def activity_days(sessions: list[RoundSession]) -> set[date]:
    days = set()
    for session in sessions:
        days.add(session.started_at.date())
        if session.completed_at:
            days.add(session.completed_at.date())
    return days


def current_streak(days: set[date], today: date) -> int:
    """Consecutive active days ending today, or yesterday if today is still empty."""
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(days: set[date]) -> int:
    longest = run = 0
    previous: Optional[date] = None
    for day in sorted(days):
        run = run + 1 if previous and day - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day
    return longest


class ProgressAggregator:
    """Builds UserStats from the repositories."""

    def __init__(self, sessions: RoundSessionRepository, simulations: SimulationRepository):
        self._sessions = sessions
        self._simulations = simulations

    def user_stats(self, user_id: str, now: datetime | None = None) -> UserStats:
        now = now or datetime.now()
        sessions = self._sessions.list_for_user(user_id)
        simulations = self._simulations.list_for_user(user_id)

        completed = [s for s in sessions if s.is_completed]
        recent = [s for s in sessions if s.started_at >= now - WEEK]

        stats = UserStats(
            total_sessions=len(sessions),
            completed_sessions=len(completed),
            completion_rate=(len(completed) / len(sessions) * 100) if sessions else 0.0,
            average_score=average_score(sessions),
            total_problems=sum(len(s.problems) for s in sessions),
            weekly=WeeklyStats(
                sessions_attempted=len(recent),
                sessions_completed=sum(1 for s in recent if s.is_completed),
                average_score=average_score(recent),
            ),
            simulations_active=sum(1 for s in simulations if s.status == SimulationStatus.ACTIVE),
            simulations_completed=sum(1 for s in simulations if s.status == SimulationStatus.COMPLETED),
        )

        for kind in PROBLEM_KINDS:
            typed = [s for s in sessions if s.round_type == kind]
            stats.performance_by_type[kind.value] = TypePerformance(
                attempted=len(typed),
                completed=sum(1 for s in typed if s.is_completed),
                average_score=average_score(typed),
            )
            stats.problems_by_type[kind.value] = 0

        stats.problems_by_difficulty = {"easy": 0, "medium": 0, "hard": 0}
        for session in sessions:
            for problem in session.problems:
                stats.problems_by_type[problem.kind.value] += 1
                stats.problems_by_difficulty[problem.difficulty] += 1

        days = activity_days(sessions)
        stats.current_streak = current_streak(days, now.date())
        stats.longest_streak = longest_streak(days)

        logger.debug(f"Computed stats for {user_id}: {stats.total_sessions} sessions")
        return stats
