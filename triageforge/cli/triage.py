"""
TriageForge CLI - unified entrypoint for the triage engine.

Usage examples:
    python -m triageforge.cli.triage serve
    python -m triageforge.cli.triage simulate --ticks 10 --seed 7 --report
"""

import argparse
import dataclasses

from triage.base.clock import ManualClock
from triage.base.config import get_config, setup_logging
from triage.engine.orchestrator import TriageEngine


def simulate(ticks: int, seed=None, manual: bool = False, report: bool = False) -> TriageEngine:
    """Replay a session headless on virtual time and print the audit trail."""
    config = get_config()
    config = dataclasses.replace(
        config,
        synthesis=dataclasses.replace(config.synthesis, seed=config.synthesis.seed if seed is None else seed),
        policy=dataclasses.replace(config.policy, auto_pilot_default=not manual),
    )

    clock = ManualClock()
    engine = TriageEngine(config, clock=clock)
    engine.start()
    # Each tick lands one interval after the last; the extra scan delay lets
    # the final scan complete before teardown
    clock.advance(ticks * config.stream.tick_interval_seconds + config.policy.scan_delay_seconds)
    engine.stop()

    for line in engine.get_audit_log():
        print(line)

    print()
    print(f"{len(engine.get_artifacts())} artifacts, {len(engine.store.reported())} flagged for report")

    if report:
        print()
        print(engine.compose_report().render_markdown())
    return engine


def main(argv=None):
    parser = argparse.ArgumentParser(description="TriageForge Command Interface")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the HTTP/WebSocket service")

    sim = subparsers.add_parser("simulate", help="Run a headless session on virtual time")
    sim.add_argument("--ticks", type=int, default=10, help="Number of ingestion ticks")
    sim.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    sim.add_argument("--manual", action="store_true", help="Start with auto-pilot disengaged")
    sim.add_argument("--report", action="store_true", help="Print the markdown incident report")

    args = parser.parse_args(argv)

    if args.command == "serve":
        print("🚀 Starting triage service...")
        from triage.server.api import serve
        serve(get_config())
    elif args.command == "simulate":
        if args.ticks < 0:
            parser.error("--ticks must not be negative")
        setup_logging(get_config())
        simulate(args.ticks, seed=args.seed, manual=args.manual, report=args.report)


if __name__ == "__main__":
    main()
