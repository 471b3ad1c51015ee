"""Entry point: ``python -m arena``.

Supports two modes:
  - ``python -m arena``            → Launch the FastAPI arena server
  - ``python -m arena cli``        → Headless matches, results to the log
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI Gladiator Arena")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI arena server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=None)
    srv.add_argument("--agents", type=int, default=4)
    srv.add_argument("--damage-model", type=str, default="flat", choices=["flat", "proportional"])
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Run headless matches")
    cli.add_argument("--seed", type=int, default=42)
    cli.add_argument("--matches", type=int, default=1)
    cli.add_argument("--agents", type=int, default=4)
    cli.add_argument("--damage-model", type=str, default="flat", choices=["flat", "proportional"])
    cli.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from arena.api.app import create_app
    from arena.config import ArenaConfig

    config = ArenaConfig(
        rng_seed=args.seed,
        agent_count=args.agents,
        damage_model=args.damage_model,
        log_level=args.log_level,
    )
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from arena.config import ArenaConfig
    from arena.engine.arena_loop import ArenaLoop
    from arena.utils.logging import setup_logging

    config = ArenaConfig(
        rng_seed=args.seed,
        agent_count=args.agents,
        damage_model=args.damage_model,
        log_level=args.log_level,
    )
    setup_logging(config.log_level)

    loop = ArenaLoop(config)
    results = loop.run(max_matches=args.matches)

    for r in results:
        winner = r.winner_name or "draw"
        logger.info("Match %d: %s (%s, %.1fs, %d power-ups, %d hazards)",
                    r.match_id, winner, r.end_reason.name.lower(), r.duration_s,
                    r.powerups_collected, r.hazards_triggered)
    logger.info("Done. %d matches played.", len(results))


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
