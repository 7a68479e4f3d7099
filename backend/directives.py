"""
Directive definitions and the directory-backed directive catalog.

A directive file looks like:

    4.5 skill:12:3;burst:20
    2-10-10-1-5
    // comments and blank lines are ignored from line 3 on
    e, attack(1.5)
    walk(w, 0.5), q

Line 1 holds the max duration (0 = self-timed) and the skill cooldowns the
directive sets; line 2 the priority rule; the remaining lines are commands.
Files live at <root>/<actor name>/<prefix><directive name>.txt.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from errors import DirectiveError, DirectiveParseError
from logger import setup_logger
from priority import PriorityModel, StaticPriority, parse_priority_line
from roles import RolePriorityLists

logger = setup_logger("directives")

COMMENT_PREFIXES = ("//", "#")


@dataclass(frozen=True)
class SkillCooldownDeclaration:
    """Executing the owning directive sets `skill_name` on cooldown.

    If the skill's remaining cooldown exceeds `accepted_cooldown` when the
    directive is evaluated, the directive is forced to the lowest precedence.
    """
    skill_name: str
    cooldown_time: float
    accepted_cooldown_time: float = 0.0


@dataclass(frozen=True)
class DirectiveConfig:
    """A parsed, immutable directive."""
    owner: str
    name: str
    max_duration: float
    skill_cooldowns: Tuple[SkillCooldownDeclaration, ...] = ()
    priority: PriorityModel = field(default_factory=StaticPriority)
    commands: Tuple[str, ...] = ()

    @property
    def key(self) -> Tuple[str, str]:
        """Identity of the directive: (owner, name)."""
        return (self.owner, self.name)

    @property
    def is_self_timed(self) -> bool:
        return self.max_duration == 0

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "name": self.name,
            "max_duration": self.max_duration,
            "skill_cooldowns": [
                {"skill": s.skill_name, "cooldown": s.cooldown_time, "accepted": s.accepted_cooldown_time}
                for s in self.skill_cooldowns
            ],
            "priority": type(self.priority).__name__,
            "commands": list(self.commands),
        }


# =============================================================================
# PARSING
# =============================================================================

def _parse_number(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_skill_cooldown(part: str, source: str = "") -> Optional[SkillCooldownDeclaration]:
    """Parse "skill:cooldown[:accepted]". Returns None (with a warning) if malformed."""
    text = part.strip()
    if not text:
        return None

    fields = [f.strip() for f in text.split(":")]
    if len(fields) not in (2, 3):
        logger.warning(f"{source}: skill cooldown must be skill:cooldown[:accepted], got {text!r}")
        return None

    skill_name = fields[0]
    if not skill_name:
        logger.warning(f"{source}: skill cooldown has an empty skill name: {text!r}")
        return None

    cooldown = _parse_number(fields[1])
    accepted = _parse_number(fields[2]) if len(fields) == 3 else 0.0
    if cooldown is None or accepted is None or cooldown < 0 or accepted < 0:
        logger.warning(f"{source}: skill cooldown values must be non-negative numbers: {text!r}")
        return None

    return SkillCooldownDeclaration(skill_name, cooldown, accepted)


def parse_header_line(line: str, source: str = "") -> Tuple[float, Tuple[SkillCooldownDeclaration, ...]]:
    """Parse line 1: "<maxDuration> [skill:cd[:accepted][;...]]"."""
    text = line.strip()
    if not text:
        raise DirectiveParseError("first line is empty", source)

    parts = text.split(None, 1)
    max_duration = _parse_number(parts[0])
    if max_duration is None or max_duration < 0:
        raise DirectiveParseError(f"max duration must be a non-negative number, got {parts[0]!r}", source)

    declarations: List[SkillCooldownDeclaration] = []
    if len(parts) == 2:
        for part in parts[1].split(";"):
            declaration = parse_skill_cooldown(part, source)
            if declaration is not None:
                declarations.append(declaration)

    return max_duration, tuple(declarations)


def parse_directive_text(text: str, owner: str, name: str, source: str = "") -> DirectiveConfig:
    """Parse the full contents of a directive file."""
    source = source or f"{owner}/{name}"
    lines = text.splitlines()
    if not lines:
        raise DirectiveParseError("file is empty", source)

    max_duration, declarations = parse_header_line(lines[0], source)
    priority = parse_priority_line(lines[1] if len(lines) > 1 else "", source)

    commands = []
    for raw in lines[2:]:
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue
        commands.append(line)

    return DirectiveConfig(
        owner=owner,
        name=name,
        max_duration=max_duration,
        skill_cooldowns=declarations,
        priority=priority,
        commands=tuple(commands),
    )


def directive_name_from_path(path: Path, prefix: str) -> str:
    stem = path.stem
    return stem[len(prefix):] if prefix and stem.startswith(prefix) else stem


def parse_directive_file(path: Path, owner: str, prefix: str) -> DirectiveConfig:
    text = path.read_text(encoding="utf-8-sig")
    return parse_directive_text(text, owner, directive_name_from_path(path, prefix), source=str(path))


# =============================================================================
# CATALOG
# =============================================================================

class DirectoryDirectiveSource:
    """Loads directives from <root>/<actor>/<prefix>*.txt."""

    def __init__(self, root: Path, prefix: str):
        self.root = Path(root)
        self.prefix = prefix

    def load(self, actor_names: Iterable[str]) -> Dict[str, List[DirectiveConfig]]:
        """Parse the directives of every named actor.

        Actors without a directory or without valid directive files are left
        out of the result. A malformed file only drops that one directive.
        """
        result: Dict[str, List[DirectiveConfig]] = {}
        if not self.root.is_dir():
            logger.warning(f"Directive directory does not exist: {self.root}")
            return result

        for actor_name in actor_names:
            actor_dir = self.root / actor_name
            if not actor_dir.is_dir():
                logger.warning(f"No directive directory for {actor_name}: {actor_dir}")
                continue

            files = sorted(actor_dir.glob(f"{self.prefix}*.txt"))
            if not files:
                logger.warning(f"No directive files found in {actor_dir}")
                continue

            configs = []
            for path in files:
                try:
                    configs.append(parse_directive_file(path, actor_name, self.prefix))
                except (DirectiveError, OSError, UnicodeDecodeError) as e:
                    logger.error(f"Dropping directive {path}: {e}")

            if configs:
                result[actor_name] = configs
                logger.debug(f"Loaded {len(configs)} directives for {actor_name}")

        return result


def load_role_priorities(path: Path) -> RolePriorityLists:
    """Load the role priority file; a missing or invalid file yields empty lists."""
    path = Path(path)
    if not path.exists():
        logger.info(f"No role priority file at {path}, using empty role lists")
        return RolePriorityLists()
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
        return RolePriorityLists.model_validate(data or {})
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Error loading role priorities from {path}: {e}")
        return RolePriorityLists()
