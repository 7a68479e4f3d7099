"""
Command interpreter for directive command lines.

A command line holds comma-separated tokens. A token is either a bare
keyword ("e", "q", "attack", "jump", ...) or a call form such as
"walk(w, 0.5)", "attack(1.2)", "wait(0.3)" or "keypress(f)". Commas inside
parentheses belong to the call's arguments.

Execution is bounded by a time budget: a timed token that would overrun the
remaining budget is clipped to exactly what is left and execution stops
after it. A faulty token is logged and skipped; it never aborts the rest of
the directive.
"""

import math
import threading
import time
from typing import Callable, Iterable, List, Optional, Tuple

from actor import Actor
from errors import CommandError
from logger import setup_logger

logger = setup_logger("executor")

Clock = Callable[[], float]
Sleeper = Callable[[float], None]

# Bare keyword -> Actor method
SIMPLE_COMMANDS = {
    "e": "use_skill",
    "skill": "use_skill",
    "q": "use_burst",
    "burst": "use_burst",
    "attack": "attack",
    "普攻": "attack",
    "普通攻击": "attack",
    "charge": "charge",
    "重击": "charge",
    "jump": "jump",
    "j": "jump",
    "跳跃": "jump",
    "dash": "dash",
    "冲刺": "dash",
    "ready": "ready",
    "完成": "ready",
}

DIRECTION_COMMANDS = ("w", "a", "s", "d")


# =============================================================================
# TOKENIZING
# =============================================================================

def split_tokens(line: str) -> List[str]:
    """Split a command line on commas that are not inside parentheses."""
    tokens = []
    depth = 0
    current = []
    for ch in line:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            tokens.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tokens.append("".join(current).strip())
    return [t for t in tokens if t]


def parse_token(token: str) -> Tuple[str, Optional[List[str]]]:
    """Return (name, args). args is None for a bare keyword."""
    text = token.strip()
    if "(" not in text and ")" not in text:
        return text.lower(), None

    open_idx = text.find("(")
    close_idx = text.rfind(")")
    if open_idx <= 0 or close_idx < open_idx or text[close_idx + 1:].strip():
        raise CommandError(token, "malformed call")

    name = text[:open_idx].strip().lower()
    inner = text[open_idx + 1:close_idx].strip()
    args = [a.strip() for a in inner.split(",")] if inner else []
    return name, args


def _seconds(token: str, value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise CommandError(token, f"invalid duration {value!r}")
    if not math.isfinite(seconds) or seconds < 0:
        raise CommandError(token, f"duration must be a non-negative number, got {value!r}")
    return seconds


def _integer(token: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CommandError(token, f"invalid integer {value!r}")


def _arity(token: str, args: List[str], *allowed: int):
    if len(args) not in allowed:
        expected = " or ".join(str(n) for n in allowed)
        raise CommandError(token, f"expected {expected} argument(s), got {len(args)}")


# =============================================================================
# EXECUTOR
# =============================================================================

class CommandExecutor:
    """Runs command lines against one actor under a time budget."""

    def __init__(
        self,
        actor: Actor,
        *,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleeper] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.actor = actor
        self.clock = clock
        self.cancel_event = cancel_event or threading.Event()
        self._sleep = sleep or self._cancellable_sleep
        self._deadline: Optional[float] = None
        self._exhausted = False

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(self, commands: Iterable[str], budget: float) -> float:
        """Execute command lines; returns the seconds actually consumed.

        budget <= 0 means no ceiling.
        """
        start = self.clock()
        self._deadline = start + budget if budget > 0 else None
        self._exhausted = False

        for line in commands:
            if self._should_stop():
                break
            for token in split_tokens(line):
                if self._should_stop():
                    break
                self._execute_token(token)

        return self.clock() - start

    def wait(self, seconds: float):
        """Idle for `seconds`, returning early on cancellation."""
        if seconds <= 0 or self.cancelled:
            return
        self._sleep(seconds)

    # Internal -------------------------------------------------------------

    def _cancellable_sleep(self, seconds: float):
        self.cancel_event.wait(seconds)

    def _remaining(self) -> float:
        if self._deadline is None:
            return math.inf
        return self._deadline - self.clock()

    def _should_stop(self) -> bool:
        if self._exhausted:
            return True
        if self.cancelled:
            logger.info("Directive cancelled, skipping remaining commands")
            self._exhausted = True
            return True
        if self._remaining() <= 0:
            logger.info("Directive time budget used up, skipping remaining commands")
            self._exhausted = True
            return True
        return False

    def _budgeted(self, token: str, seconds: float) -> float:
        """Clip a requested duration to the remaining budget."""
        remaining = self._remaining()
        if seconds > remaining:
            logger.info(f"Clipping {token!r} from {seconds:.2f}s to {remaining:.2f}s")
            self._exhausted = True
            return max(0.0, remaining)
        return seconds

    def _execute_token(self, token: str):
        try:
            name, args = parse_token(token)
            if args is None:
                self._execute_keyword(name, token)
            else:
                self._execute_call(name, args, token)
        except Exception as e:
            logger.warning(f"Command failed, skipping {token!r}: {e}")

    def _execute_keyword(self, name: str, token: str):
        method = SIMPLE_COMMANDS.get(name)
        if method is not None:
            getattr(self.actor, method)()
            return
        # Unknown keywords are tried as a raw key press
        try:
            self.actor.key_press(token.strip())
        except Exception as e:
            logger.warning(f"Unknown command {token!r}: {e}")

    def _execute_call(self, name: str, args: List[str], token: str):
        actor = self.actor

        if name == "walk":
            _arity(token, args, 2)
            actor.walk(args[0], self._budgeted(token, _seconds(token, args[1])))
        elif name in DIRECTION_COMMANDS:
            _arity(token, args, 1)
            actor.walk(name, self._budgeted(token, _seconds(token, args[0])))
        elif name in ("attack", "charge", "dash"):
            _arity(token, args, 0, 1)
            method = getattr(actor, name)
            if args:
                method(self._budgeted(token, _seconds(token, args[0])))
            else:
                method()
        elif name == "wait":
            _arity(token, args, 1)
            self.wait(self._budgeted(token, _seconds(token, args[0])))
        elif name == "mousedown":
            _arity(token, args, 0, 1)
            actor.mouse_down(*args)
        elif name == "mouseup":
            _arity(token, args, 0, 1)
            actor.mouse_up(*args)
        elif name == "click":
            _arity(token, args, 0, 1)
            actor.click(*args)
        elif name == "moveby":
            _arity(token, args, 2)
            actor.move_by(_integer(token, args[0]), _integer(token, args[1]))
        elif name == "scroll":
            _arity(token, args, 1)
            actor.scroll(_integer(token, args[0]))
        elif name == "keydown":
            _arity(token, args, 1)
            actor.key_down(args[0])
        elif name == "keyup":
            _arity(token, args, 1)
            actor.key_up(args[0])
        elif name == "keypress":
            _arity(token, args, 1)
            actor.key_press(args[0])
        else:
            raise CommandError(token, f"unknown command {name!r}")
