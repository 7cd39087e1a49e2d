"""Local simulation: invoke the action the way the function platform does.

Default parameters (host, port, credentials, ...) are read from a JSON file. An
optional positional argument sets numTestMessages so the action seeds its own queue.

    python -m mqdrain.app.main 5
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from mqdrain.app import action
from mqdrain.app.config.settings import Settings
from mqdrain.app.constants import PARAM_NUM_TEST_MESSAGES, RETURN_ERROR
from mqdrain.app.core import SERVICE_NAME

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message} | {extra}"


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def load_parameters(path: Path) -> dict[str, Any]:
    params = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(params, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mqdrain",
        description="Simulate one invocation of the queue drain action.",
    )
    parser.add_argument(
        "num_test_messages",
        nargs="?",
        type=int,
        help="number of sample messages to put on the queue before draining",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with the default action parameters (default: ACTION_CONFIG_FILE)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level)
    _log("simulation_started")

    config_path = args.config or Path(settings.action_config_file)
    try:
        params = load_parameters(config_path)
    except (OSError, ValueError) as exc:
        logger.error("could not load parameters from {}: {}", config_path, exc)
        return 2

    if args.num_test_messages is not None:
        params[PARAM_NUM_TEST_MESSAGES] = args.num_test_messages

    result = action.main(params, settings)
    print(json.dumps(result))
    _log("simulation_finished")
    return 1 if RETURN_ERROR in result else 0


if __name__ == "__main__":
    sys.exit(main())
