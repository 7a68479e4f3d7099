"""
Directive scheduler - the decision core of the combat loop.

Each cycle:
  1. Resolve the party and its directives (cached per party composition).
  2. Compute every directive's real priority: the forced sentinel (11) when a
     declared skill is still cooling down beyond its accepted cooldown,
     otherwise the priority model's value minus the active/shield/heal
     bonuses (never below 1).
  3. Pick the lowest real priority, breaking ties by shield role, heal role,
     frontline rank, directive name within one actor, then enumeration order.
  4. Switch to the owner, commit cooldowns and virtual time, run the commands.

Virtual time only advances by the effective duration of executed directives,
so the whole model is replayable from the sequence of selections.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from actor import Actor, CombatScene
from config import Settings, get_settings
from cooldowns import CooldownTracker
from directives import DirectiveConfig
from executor import Clock, CommandExecutor, Sleeper
from logger import setup_logger
from priority import FORCED_PRIORITY, MIN_PRIORITY, evaluate_priority, is_time_dependent
from roles import RolePriorityIndex, RolePriorityLists

logger = setup_logger("scheduler")

DirectiveKey = Tuple[str, str]


class DirectiveSource(Protocol):
    """Provides parsed directives for a set of actor names."""

    def load(self, actor_names: Iterable[str]) -> Dict[str, List[DirectiveConfig]]: ...


@dataclass
class ExecutionState:
    """Virtual time since a time-dependent directive last ran."""
    elapsed_since_execution: float = 0.0
    has_executed: bool = False


@dataclass(frozen=True)
class RankedDirective:
    """A directive with its real priority for the current cycle."""
    directive: DirectiveConfig
    priority: int
    forced: bool = False
    index: int = 0  # enumeration order within the cycle

    @property
    def owner(self) -> str:
        return self.directive.owner


@dataclass
class CycleResult:
    """What one scheduler cycle did."""
    directive: DirectiveConfig
    priority: int
    candidates: List[RankedDirective] = field(default_factory=list)
    effective_duration: float = 0.0
    consumed: float = 0.0
    padding: float = 0.0
    executed_by: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "actor": self.directive.owner,
            "directive": self.directive.name,
            "priority": self.priority,
            "candidates": [f"{c.owner}/{c.directive.name}" for c in self.candidates],
            "effective_duration": round(self.effective_duration, 3),
            "consumed": round(self.consumed, 3),
            "padding": round(self.padding, 3),
            "executed_by": self.executed_by,
        }


class Scheduler:
    """Selects and triggers one directive per cycle."""

    def __init__(
        self,
        scene: CombatScene,
        source: DirectiveSource,
        role_priorities: Optional[RolePriorityLists] = None,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleeper] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.scene = scene
        self.source = source
        self.settings = settings or get_settings()
        self.roles = RolePriorityIndex(role_priorities)
        self.cooldowns = CooldownTracker()
        self.clock = clock
        self.sleep = sleep
        self.cancel_event = cancel_event or threading.Event()

        self._execution: Dict[DirectiveKey, ExecutionState] = {}
        self._catalog_key: Optional[Tuple[str, ...]] = None
        self._catalog: Dict[str, List[DirectiveConfig]] = {}

    # =========================================================================
    # STATE
    # =========================================================================

    def execution_state(self, directive: DirectiveConfig) -> Optional[ExecutionState]:
        """Execution state of a directive; None until a time-dependent directive first runs."""
        return self._execution.get(directive.key)

    def catalog_for(self, party_names: Sequence[str]) -> Dict[str, List[DirectiveConfig]]:
        """Directives of the party, reloaded only when the member set changes."""
        key = tuple(sorted(set(party_names)))
        if key != self._catalog_key:
            logger.info(f"Party changed to {list(key)}, loading directives")
            self._catalog = self.source.load(list(party_names))
            self._catalog_key = key
        return self._catalog

    # =========================================================================
    # PRIORITY
    # =========================================================================

    def is_forced(self, directive: DirectiveConfig) -> bool:
        """True when a declared skill is cooling down beyond its accepted cooldown."""
        for declaration in directive.skill_cooldowns:
            if not self.cooldowns.is_on_cooldown(directive.owner, declaration.skill_name):
                continue
            if self.cooldowns.remaining(directive.owner, declaration.skill_name) > declaration.accepted_cooldown_time:
                return True
        return False

    def real_priority(
        self,
        directive: DirectiveConfig,
        active: Optional[str],
        highest_shield: Optional[str],
        highest_heal: Optional[str],
    ) -> Tuple[int, bool]:
        """Return (real priority, forced)."""
        if self.is_forced(directive):
            return FORCED_PRIORITY, True

        state = self._execution.get(directive.key)
        if state is None:
            priority = evaluate_priority(directive.priority, 0.0, False)
        else:
            priority = evaluate_priority(directive.priority, state.elapsed_since_execution, state.has_executed)

        owner = directive.owner
        if active is not None and owner == active:
            priority = max(MIN_PRIORITY, priority - 1)
        if highest_shield is not None and owner == highest_shield:
            priority = max(MIN_PRIORITY, priority - 1)
        if highest_heal is not None and owner == highest_heal:
            priority = max(MIN_PRIORITY, priority - 1)
        return priority, False

    def rank(
        self,
        catalog: Dict[str, List[DirectiveConfig]],
        party_names: Sequence[str],
        active: Optional[str],
    ) -> List[RankedDirective]:
        """Real priority of every directive, in party enumeration order."""
        highest_shield = self.roles.highest_shield(party_names)
        highest_heal = self.roles.highest_heal(party_names)

        ranked: List[RankedDirective] = []
        for name in party_names:
            for directive in catalog.get(name, []):
                priority, forced = self.real_priority(directive, active, highest_shield, highest_heal)
                ranked.append(RankedDirective(directive, priority, forced, len(ranked)))
        return ranked

    # =========================================================================
    # SELECTION
    # =========================================================================

    def candidates(self, ranked: Sequence[RankedDirective]) -> List[RankedDirective]:
        """All directives tied at the minimum real priority."""
        if not ranked:
            return []
        best = min(r.priority for r in ranked)
        return [r for r in ranked if r.priority == best]

    def select(self, ranked: Sequence[RankedDirective], party_names: Sequence[str]) -> RankedDirective:
        """Pick the winning directive using the tie-break cascade."""
        pool = self.candidates(ranked)
        if not pool:
            raise ValueError("No directives to select from")
        if len(pool) == 1:
            return pool[0]

        shields = [r for r in pool if self.roles.is_shield(r.owner)]
        healers = [r for r in pool if self.roles.is_healer(r.owner)]
        if shields:
            pool = shields
        elif healers:
            pool = healers

        def frontline(r: RankedDirective) -> float:
            return self.roles.frontline_rank(r.owner, party_names)

        best_front = min(frontline(r) for r in pool)
        pool = [r for r in pool if frontline(r) == best_front]
        if len(pool) == 1:
            return pool[0]

        # Several directives of one actor: lexicographically first name
        by_owner: Dict[str, RankedDirective] = {}
        for r in pool:
            current = by_owner.get(r.owner)
            if current is None or r.directive.name < current.directive.name:
                by_owner[r.owner] = r

        return min(by_owner.values(), key=lambda r: r.index)

    # =========================================================================
    # TRIGGERING
    # =========================================================================

    def _current_actor_name(self) -> Optional[str]:
        try:
            return self.scene.current_actor()
        except Exception as e:
            logger.warning(f"Could not read the active actor: {e}")
            return None

    def _switch_to(self, target: str, party: Sequence[Actor]):
        current = self._current_actor_name()
        if current is not None and current == target:
            return
        actor = next((a for a in party if a.name == target), None)
        if actor is None:
            logger.warning(f"Actor not found in party: {target}")
            return
        logger.info(f"Switching actor: {current or 'unknown'} -> {target}")
        try:
            actor.switch()
        except Exception as e:
            logger.warning(f"Failed to switch to {target}: {e}")

    def _executing_actor(self, party: Sequence[Actor]) -> Optional[Actor]:
        name = self._current_actor_name()
        if name:
            actor = next((a for a in party if a.name == name), None)
            if actor is not None:
                return actor
        return party[0] if party else None

    def _commit_virtual_time(self, directive: DirectiveConfig, duration: float):
        """Decay cooldowns and advance the execution timers by `duration`."""
        self.cooldowns.decay_all(duration)
        for key, state in self._execution.items():
            if key != directive.key and state.has_executed:
                state.elapsed_since_execution += duration
        if is_time_dependent(directive.priority):
            self._execution[directive.key] = ExecutionState(elapsed_since_execution=0.0, has_executed=True)

    def trigger(
        self,
        selected: RankedDirective,
        party: Sequence[Actor],
        candidates: Sequence[RankedDirective] = (),
    ) -> CycleResult:
        """Run the selected directive and commit its cooldown and virtual-time effects."""
        directive = selected.directive
        self._switch_to(directive.owner, party)

        for declaration in directive.skill_cooldowns:
            self.cooldowns.set_cooldown(directive.owner, declaration.skill_name, declaration.cooldown_time)

        result = CycleResult(directive=directive, priority=selected.priority, candidates=list(candidates))

        # Fixed-budget directives commit before running; a cancelled run is not rolled back
        if not directive.is_self_timed:
            result.effective_duration = directive.max_duration
            self._commit_virtual_time(directive, directive.max_duration)

        actor = self._executing_actor(party)
        if actor is None:
            logger.warning("No actor available to execute commands, skipping execution")
        else:
            result.executed_by = actor.name
            executor = CommandExecutor(actor, clock=self.clock, sleep=self.sleep, cancel_event=self.cancel_event)
            result.consumed = executor.run(directive.commands, directive.max_duration)

            if not directive.is_self_timed and result.consumed < directive.max_duration and not executor.cancelled:
                result.padding = directive.max_duration - result.consumed
                logger.debug(f"Padding {directive.owner}/{directive.name} with {result.padding:.2f}s wait")
                executor.wait(result.padding)

        if directive.is_self_timed:
            result.effective_duration = max(result.consumed, self.settings.min_cycle_seconds)
            self._commit_virtual_time(directive, result.effective_duration)

        return result

    # =========================================================================
    # CYCLE
    # =========================================================================

    def process_cycle(self) -> Optional[CycleResult]:
        """Select and run one directive. Returns None if nothing ran."""
        try:
            party = list(self.scene.get_avatars())
            if not party:
                logger.warning("No party members found")
                return None

            party_names = [a.name for a in party]
            catalog = self.catalog_for(party_names)
            if not any(catalog.get(name) for name in party_names):
                logger.warning("No directives found for any party member")
                return None

            active = self._current_actor_name()
            ranked = self.rank(catalog, party_names, active)
            selected = self.select(ranked, party_names)
            candidates = self.candidates(ranked)

            logger.info(
                f"Selected directive: {selected.owner}/{selected.directive.name} - priority: {selected.priority}"
            )
            threshold = self.settings.high_priority_threshold
            urgent = [r for r in ranked if r.priority < threshold]
            if urgent:
                summary = ", ".join(f"{r.owner}/{r.directive.name}({r.priority})" for r in urgent)
                logger.info(f"Directives below priority {threshold}: {summary}")

            return self.trigger(selected, party, candidates)
        except Exception as e:
            logger.error(f"Error in auto-fight cycle: {e}")
            return None

    def snapshot(self) -> dict:
        """Scheduler state for status reporting."""
        return {
            "party": list(self._catalog_key or ()),
            "directives": {name: [d.name for d in configs] for name, configs in self._catalog.items()},
            "cooldowns": self.cooldowns.snapshot(),
            "execution": {
                f"{owner}/{name}": {
                    "elapsed": round(state.elapsed_since_execution, 3),
                    "has_executed": state.has_executed,
                }
                for (owner, name), state in self._execution.items()
            },
        }
