"""
Priority models for combat directives.

A directive's priority is either a constant (StaticPriority) or a curve over
the virtual time elapsed since the directive last ran (DynamicPriority).
Lower values win. Normal priorities live in [1, 10]; 11 is reserved for the
forced "skill still on cooldown" sentinel applied by the scheduler.
"""

import math
from dataclasses import dataclass
from typing import Union

from errors import DirectiveParseError, PriorityConfigError
from logger import setup_logger

logger = setup_logger("priority")

MIN_PRIORITY = 1
MAX_PRIORITY = 10
FORCED_PRIORITY = 11
DEFAULT_STATIC_PRIORITY = 10
# 4-field dynamic lines carry no default priority of their own
DEFAULT_DYNAMIC_PRIORITY = 1


def _check_range(name: str, value: int):
    if not MIN_PRIORITY <= value <= MAX_PRIORITY:
        raise PriorityConfigError(f"{name} must be in [{MIN_PRIORITY}, {MAX_PRIORITY}], got {value}")


@dataclass(frozen=True)
class StaticPriority:
    """Constant priority, independent of execution history."""
    value: int = DEFAULT_STATIC_PRIORITY

    def __post_init__(self):
        _check_range("priority", self.value)

    def evaluate(self, elapsed_since_execution: float, has_executed: bool) -> int:
        return self.value


@dataclass(frozen=True)
class DynamicPriority:
    """Priority interpolated linearly across [start_time, end_time] after execution.

    Before the first execution, and outside the window, default_priority applies.
    """
    start_time: float
    end_time: float
    start_priority: int
    end_priority: int
    default_priority: int = DEFAULT_DYNAMIC_PRIORITY

    def __post_init__(self):
        if not (math.isfinite(self.start_time) and math.isfinite(self.end_time)):
            raise PriorityConfigError(f"window must be finite, got {self.start_time}-{self.end_time}")
        if self.start_time < 0:
            raise PriorityConfigError(f"start_time must be >= 0, got {self.start_time}")
        if self.start_time >= self.end_time:
            # an empty window would divide by zero during interpolation
            raise PriorityConfigError(
                f"start_time must be < end_time, got {self.start_time} >= {self.end_time}"
            )
        _check_range("start_priority", self.start_priority)
        _check_range("end_priority", self.end_priority)
        _check_range("default_priority", self.default_priority)

    def evaluate(self, elapsed_since_execution: float, has_executed: bool) -> int:
        if not has_executed:
            return self.default_priority
        elapsed = elapsed_since_execution
        if elapsed < self.start_time or elapsed > self.end_time:
            return self.default_priority
        ratio = (elapsed - self.start_time) / (self.end_time - self.start_time)
        return int(round(self.start_priority + (self.end_priority - self.start_priority) * ratio))


PriorityModel = Union[StaticPriority, DynamicPriority]


def evaluate_priority(model: PriorityModel, elapsed_since_execution: float, has_executed: bool) -> int:
    """Evaluate any priority model."""
    if isinstance(model, StaticPriority):
        return model.evaluate(elapsed_since_execution, has_executed)
    if isinstance(model, DynamicPriority):
        return model.evaluate(elapsed_since_execution, has_executed)
    raise TypeError(f"Unsupported priority model: {type(model).__name__}")


def is_time_dependent(model: PriorityModel) -> bool:
    """Only dynamic models need per-directive execution state."""
    if isinstance(model, StaticPriority):
        return False
    if isinstance(model, DynamicPriority):
        return True
    raise TypeError(f"Unsupported priority model: {type(model).__name__}")


def parse_priority_line(line: str, source: str = "") -> PriorityModel:
    """Parse the priority line of a directive file.

    Accepted forms:
      "<p>"                           static priority in [1, 10]
      "start-end-startP-endP"         dynamic, default priority 1
      "start-end-startP-endP-defP"    dynamic

    An empty line yields static priority 10. Out-of-range priorities and
    start > end fall back to static priority 10. Anything else that does not
    match these forms raises DirectiveParseError.
    """
    text = line.strip()
    if not text:
        return StaticPriority(DEFAULT_STATIC_PRIORITY)

    if "-" not in text:
        try:
            value = int(text)
        except ValueError:
            raise DirectiveParseError(f"invalid priority {text!r}", source)
        if not MIN_PRIORITY <= value <= MAX_PRIORITY:
            logger.warning(f"{source}: priority {value} out of range, using {DEFAULT_STATIC_PRIORITY}")
            return StaticPriority(DEFAULT_STATIC_PRIORITY)
        return StaticPriority(value)

    parts = [p.strip() for p in text.split("-")]
    if len(parts) not in (4, 5):
        raise DirectiveParseError(f"dynamic priority needs 4 or 5 fields, got {len(parts)}: {text!r}", source)
    try:
        start_time = float(parts[0])
        end_time = float(parts[1])
        priorities = [int(p) for p in parts[2:]]
    except ValueError:
        raise DirectiveParseError(f"invalid dynamic priority {text!r}", source)
    if not (math.isfinite(start_time) and math.isfinite(end_time)):
        raise DirectiveParseError(f"dynamic priority window must be finite: {text!r}", source)

    if len(priorities) == 2:
        priorities.append(DEFAULT_DYNAMIC_PRIORITY)

    if start_time > end_time or any(not MIN_PRIORITY <= p <= MAX_PRIORITY for p in priorities):
        logger.warning(f"{source}: dynamic priority {text!r} out of range, using {DEFAULT_STATIC_PRIORITY}")
        return StaticPriority(DEFAULT_STATIC_PRIORITY)

    # start == end still reaches the constructor and is rejected there
    return DynamicPriority(start_time, end_time, priorities[0], priorities[1], priorities[2])
