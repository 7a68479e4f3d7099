"""
Capability interfaces the combat loop drives.

Actors perform game input (movement, attacks, raw mouse/key events); the
combat scene reports the party and the active actor. Implementations raise
errors.ActorError when a capability cannot be performed.
"""

from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Actor(Protocol):
    """A controllable party member, identified by its unique name.

    Durations are in seconds; timed calls block for that long.
    """
    name: str

    def walk(self, direction: str, seconds: float) -> None: ...
    def attack(self, seconds: float = 0) -> None: ...
    def charge(self, seconds: float = 0) -> None: ...
    def dash(self, seconds: float = 0) -> None: ...
    def use_skill(self) -> None: ...
    def use_burst(self) -> None: ...
    def jump(self) -> None: ...
    def ready(self) -> None: ...

    def mouse_down(self, button: str = "left") -> None: ...
    def mouse_up(self, button: str = "left") -> None: ...
    def click(self, button: str = "left") -> None: ...
    def move_by(self, dx: int, dy: int) -> None: ...
    def scroll(self, amount: int) -> None: ...
    def key_down(self, key: str) -> None: ...
    def key_up(self, key: str) -> None: ...
    def key_press(self, key: str) -> None: ...

    def switch(self) -> None: ...


@runtime_checkable
class CombatScene(Protocol):
    """Party introspection."""

    def get_avatars(self) -> List[Actor]: ...
    def current_actor(self) -> Optional[str]: ...
