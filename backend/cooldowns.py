"""
Skill cooldown tracking in virtual time.

Remaining cooldowns only move when the scheduler reports virtual time spent
executing directives, never by wall clock. Entries are kept once created, so
a cooldown of 0 ("known to be ready") stays distinct from "never tracked".
"""

from typing import Dict, Iterator, Tuple

from logger import setup_logger

logger = setup_logger("cooldowns")


class CooldownTracker:
    """Remaining cooldown per (actor, skill)."""

    def __init__(self):
        self._remaining: Dict[Tuple[str, str], float] = {}

    def set_cooldown(self, actor: str, skill: str, value: float):
        """Overwrite (or create) the remaining cooldown of a skill, clamped to >= 0."""
        self._remaining[(actor, skill)] = max(0.0, float(value))
        logger.debug(f"Cooldown set: {actor}.{skill} = {self._remaining[(actor, skill)]:.2f}s")

    def decay_all(self, virtual_seconds: float):
        """Advance virtual time for every tracked skill."""
        if virtual_seconds <= 0:
            return
        for key, remaining in self._remaining.items():
            self._remaining[key] = max(0.0, remaining - virtual_seconds)

    def remaining(self, actor: str, skill: str) -> float:
        return self._remaining.get((actor, skill), 0.0)

    def is_on_cooldown(self, actor: str, skill: str) -> bool:
        return self.remaining(actor, skill) > 0

    def is_tracked(self, actor: str, skill: str) -> bool:
        return (actor, skill) in self._remaining

    def __len__(self) -> int:
        return len(self._remaining)

    def __iter__(self) -> Iterator[Tuple[str, str, float]]:
        for (actor, skill), remaining in self._remaining.items():
            yield actor, skill, remaining

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        """Nested {actor: {skill: remaining}} copy, for status reporting."""
        result: Dict[str, Dict[str, float]] = {}
        for actor, skill, remaining in self:
            result.setdefault(actor, {})[skill] = round(remaining, 3)
        return result
