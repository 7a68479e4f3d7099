"""Preview directive selection for a party without sending any game input."""

import argparse
import json
from dataclasses import replace
from pathlib import Path

from combat_loop import create_manager
from config import DEFAULT_ROLE_PRIORITY_FILENAME, get_settings
from dry_run import DryRunScene
from logger import setup_logger

logger = setup_logger("main")


def _parse_args(argv=None):
    p = argparse.ArgumentParser(description="Dry-run the auto-fight scheduler for a party.")
    p.add_argument("party", nargs="+", help="Party member names, in party order")
    p.add_argument("--cycles", type=int, default=10, help="Number of cycles to run")
    p.add_argument("--active", default=None, help="Initially active member (default: first)")
    p.add_argument("--directive-dir", default=None, help="Override AUTOFIGHT_DIRECTIVE_DIR")
    p.add_argument("--role-file", default=None, help="Override AUTOFIGHT_ROLE_PRIORITY_FILE")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    if args.directive_dir:
        directive_dir = Path(args.directive_dir)
        settings = replace(
            settings,
            directive_dir=directive_dir,
            role_priority_file=directive_dir / DEFAULT_ROLE_PRIORITY_FILENAME,
        )
    if args.role_file:
        settings = replace(settings, role_priority_file=Path(args.role_file))

    logger.info(f"Dry run: party={args.party} cycles={args.cycles} directives={settings.directive_dir}")
    scene = DryRunScene(args.party, active=args.active)
    manager = create_manager(scene, settings, clock=scene.clock.now, sleep=scene.clock.sleep)

    for i, result in enumerate(manager.run_cycles(args.cycles), start=1):
        if result is None:
            print(f"{i:3d}  (no directive)")
            continue
        print(
            f"{i:3d}  t={scene.clock.now():8.2f}  {result.directive.owner}/{result.directive.name}"
            f"  priority={result.priority}  duration={result.effective_duration:.2f}s"
        )

    print(json.dumps(manager.get_status()["cooldowns"], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
