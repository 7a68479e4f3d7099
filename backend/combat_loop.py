"""
Auto-fight control loop.

Runs Scheduler.process_cycle serially on a single background thread. Stopping
sets the scheduler's cancellation event, which aborts the running directive
between command tokens and during waits.
"""

import threading
import time
from typing import Optional

from actor import CombatScene
from config import Settings, get_settings
from directives import DirectoryDirectiveSource, load_role_priorities
from executor import Clock, Sleeper
from logger import setup_logger
from scheduler import CycleResult, Scheduler

logger = setup_logger("combat_loop")

DEFAULT_IDLE_WAIT = 1.0  # seconds between retries when no directive can run


class AutoFightManager:
    """Owns one Scheduler and the thread that drives it."""

    def __init__(self, scheduler: Scheduler, idle_wait: float = DEFAULT_IDLE_WAIT):
        self.scheduler = scheduler
        self.idle_wait = idle_wait
        self.is_running: bool = False
        self.cycle_count: int = 0
        self.last_result: Optional[CycleResult] = None
        self._snapshot: dict = scheduler.snapshot()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def cancel_event(self) -> threading.Event:
        return self.scheduler.cancel_event

    def run_cycle(self) -> Optional[CycleResult]:
        """Run one cycle on the calling thread."""
        result = self.scheduler.process_cycle()
        # scheduler state is only read on the loop thread
        snapshot = self.scheduler.snapshot()
        with self._lock:
            self.cycle_count += 1
            self._snapshot = snapshot
            if result is not None:
                self.last_result = result
        return result

    def run_cycles(self, count: int) -> list:
        """Run up to `count` cycles synchronously; stops early on cancellation."""
        results = []
        for _ in range(count):
            if self.cancel_event.is_set():
                break
            results.append(self.run_cycle())
        return results

    def _loop(self, max_cycles: Optional[int]):
        done = 0
        try:
            while not self.cancel_event.is_set():
                if max_cycles is not None and done >= max_cycles:
                    break
                result = self.run_cycle()
                done += 1
                if result is None:
                    # nothing to run: wait before looking at the party again
                    self.cancel_event.wait(self.idle_wait)
        except Exception as e:
            logger.error(f"Auto-fight loop stopped by error: {e}")
        finally:
            with self._lock:
                self.is_running = False
            logger.info(f"Auto-fight loop finished after {done} cycles")

    def start(self, max_cycles: Optional[int] = None) -> dict:
        """Start the loop on a background thread."""
        with self._lock:
            if self.is_running:
                return {"status": "error", "message": "Auto-fight already running"}
            self.is_running = True

        self.cancel_event.clear()
        self._thread = threading.Thread(target=self._loop, args=(max_cycles,), name="autofight", daemon=True)
        self._thread.start()
        logger.info("Auto-fight started")
        return {"status": "success", "message": "Auto-fight started"}

    def stop(self, timeout: Optional[float] = None) -> dict:
        """Cancel the running directive and stop the loop."""
        with self._lock:
            running = self.is_running
        if not running:
            return {"status": "error", "message": "Auto-fight not running"}

        self.cancel_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Auto-fight stopped")
        return {"status": "success", "message": "Auto-fight stopped", "cycles": self.cycle_count}

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop thread ends. Returns False on timeout."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def get_status(self) -> dict:
        with self._lock:
            last = self.last_result.to_dict() if self.last_result else None
            return {
                "status": "success",
                "is_running": self.is_running,
                "cycle_count": self.cycle_count,
                "last_selection": last,
                **self._snapshot,
            }


def create_manager(
    scene: CombatScene,
    settings: Optional[Settings] = None,
    *,
    clock: Clock = time.monotonic,
    sleep: Optional[Sleeper] = None,
    idle_wait: float = DEFAULT_IDLE_WAIT,
) -> AutoFightManager:
    """Wire a scheduler to the directive directory and role priority file from settings."""
    settings = settings or get_settings()
    source = DirectoryDirectiveSource(settings.directive_dir, settings.directive_prefix)
    roles = load_role_priorities(settings.role_priority_file)
    scheduler = Scheduler(scene, source, roles, settings=settings, clock=clock, sleep=sleep)
    return AutoFightManager(scheduler, idle_wait=idle_wait)
