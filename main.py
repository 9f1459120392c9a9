"""
Entry point for the Columns project.

Supports two modes:
  - play:     Play Columns with keyboard controls.
  - simulate: Play many headless games with random inputs and print stats.

Usage:
    python main.py --mode play
    python main.py --mode play --config config/columns.yaml
    python main.py --mode simulate --games 200 --seed 7
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

import yaml
from rich.logging import RichHandler

from columns.game.engine import ConfigError


def load_config(config_path: str | pathlib.Path) -> dict:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Dict of configuration key-value pairs.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    config_path = pathlib.Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Namespace with mode, config, games, seed and log_level attributes.
    """
    parser = argparse.ArgumentParser(
        description="Columns — a falling-gem matching puzzle.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["play", "simulate"],
        default="play",
        help="Run mode: 'play' (manual play), 'simulate' (headless random games).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/columns.yaml",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--games",
        type=int,
        default=100,
        help="Number of games to play in 'simulate' mode (default: 100).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (overrides the config file).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point: parse args, load config, and dispatch to the selected mode."""
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level, format="%(message)s", datefmt="[%X]", handlers=[RichHandler()]
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if args.seed is not None:
        config["seed"] = args.seed

    try:
        if args.mode == "play":
            from columns.play import play_manual
            play_manual(config)

        elif args.mode == "simulate":
            from columns.simulate import simulate
            simulate(config, games=args.games, seed=config.get("seed"))

        else:
            print(f"Unknown mode: {args.mode}", file=sys.stderr)
            sys.exit(1)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
