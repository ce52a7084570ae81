"""Waypoint store collaborator.

Goal points are persisted outside the core (browser storage, a small HTTP
service). The core only needs to load and save lists of
:class:`~robodash.models.goal.GoalPoint`.
"""

from __future__ import annotations

from typing import Protocol

from robodash.models.goal import GoalPoint


class WaypointStore(Protocol):
    """Structural interface for a goal point store."""

    def load(self) -> list[GoalPoint]:
        ...

    def save(self, goals: list[GoalPoint]) -> None:
        ...
