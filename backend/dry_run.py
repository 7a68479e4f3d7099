"""
Dry-run combat scene.

Actors here record every capability call instead of sending game input, and
timed calls advance a shared VirtualClock instead of blocking. Used by the
CLI to preview directive selection and by the tests.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from errors import ActorError
from logger import setup_logger

logger = setup_logger("dry_run")


class VirtualClock:
    """Clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def sleep(self, seconds: float):
        if seconds > 0:
            self._now += seconds


@dataclass
class DryRunActor:
    """Actor that logs its calls and spends virtual time."""
    name: str
    clock: VirtualClock
    scene: Optional["DryRunScene"] = None
    tap_seconds: float = 0.0
    failing: Set[str] = field(default_factory=set)
    calls: List[Tuple] = field(default_factory=list)

    def _record(self, capability: str, *args, seconds: float = 0.0):
        if capability in self.failing:
            raise ActorError(f"{self.name} cannot {capability}")
        self.calls.append((capability,) + args)
        logger.debug(f"[{self.clock.now():8.2f}] {self.name}: {capability}{args}")
        self.clock.sleep(seconds or self.tap_seconds)

    def walk(self, direction: str, seconds: float):
        self._record("walk", direction, seconds, seconds=seconds)

    def attack(self, seconds: float = 0):
        self._record("attack", seconds, seconds=seconds)

    def charge(self, seconds: float = 0):
        self._record("charge", seconds, seconds=seconds)

    def dash(self, seconds: float = 0):
        self._record("dash", seconds, seconds=seconds)

    def use_skill(self):
        self._record("use_skill")

    def use_burst(self):
        self._record("use_burst")

    def jump(self):
        self._record("jump")

    def ready(self):
        self._record("ready")

    def mouse_down(self, button: str = "left"):
        self._record("mouse_down", button)

    def mouse_up(self, button: str = "left"):
        self._record("mouse_up", button)

    def click(self, button: str = "left"):
        self._record("click", button)

    def move_by(self, dx: int, dy: int):
        self._record("move_by", dx, dy)

    def scroll(self, amount: int):
        self._record("scroll", amount)

    def key_down(self, key: str):
        self._record("key_down", key)

    def key_up(self, key: str):
        self._record("key_up", key)

    def key_press(self, key: str):
        self._record("key_press", key)

    def switch(self):
        self._record("switch")
        if self.scene is not None:
            self.scene.active = self.name


class DryRunScene:
    """A party of DryRunActors sharing one VirtualClock."""

    def __init__(self, names: Iterable[str], clock: Optional[VirtualClock] = None, active: Optional[str] = None):
        self.clock = clock or VirtualClock()
        self.actors = [DryRunActor(name, self.clock, scene=self) for name in names]
        self.active = active if active is not None else (self.actors[0].name if self.actors else None)

    def get_avatars(self) -> List[DryRunActor]:
        return list(self.actors)

    def current_actor(self) -> Optional[str]:
        return self.active

    def actor(self, name: str) -> DryRunActor:
        for a in self.actors:
            if a.name == name:
                return a
        raise KeyError(name)
