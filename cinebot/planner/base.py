"""Planner abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .types import PlannerContext, SearchPlan


class Planner(ABC):
    """Decides whether and how to search given the latest conversational turn."""

    @abstractmethod
    async def plan(self, context: PlannerContext) -> SearchPlan:
        """Return a search plan for the given context; never raise for bad input."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable summary of planner strategy."""
