"""Argument parsing, configuration loading, and orchestrator bootstrap."""

from __future__ import annotations

import argparse
import logging
import shlex
import sys

from .balancer.elb_client import ELBClient
from .config import AppConfig, apply_overrides, load_config
from .exceptions import (
    ConfigError,
    IdentityError,
    InstanceNotAssignedError,
    PollTimeoutError,
    RollError,
)
from .executor import CommandExecutor
from .identity.aws_client import AWSIdentityResolver
from .logging_config import configure_logging
from .orchestrator import Orchestrator
from .version import detailed

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_NOT_ASSIGNED = 2
EXIT_IDENTITY = 3
EXIT_TIMEOUT = 4
EXIT_INTERRUPTED = 130

DESCRIPTION = """\
elb-roll removes an EC2 instance from every Elastic Load Balancer it belongs
to while a command (such as a deployment script) runs, then adds the instance
back and waits until it is healthy again.

examples:
  elb-roll ./deploy.sh
  elb-roll "systemctl restart app && ./smoke-test.sh"
"""


class _Parser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit 1, keeping 2 free for 'no load balancers'."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="elb-roll",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="*",
        help="Command to run while drained, interpreted by the shell (quote it to pass it as one argument)",
    )
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        help="Show version information and exit",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to an optional YAML configuration file",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between load balancer health polls (default 5)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Give up waiting on a poll phase after this many seconds (default 0 = wait forever)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level, e.g. DEBUG or INFO",
    )
    parser.add_argument(
        "--log-format",
        choices=("json", "text"),
        help="Log output format",
    )
    return parser


def build_orchestrator(config: AppConfig) -> Orchestrator:
    """Wire the AWS-backed collaborators into an Orchestrator."""
    return Orchestrator(
        resolver=AWSIdentityResolver(config.aws, config.tags),
        controller_factory=lambda instance: ELBClient(config.aws, instance.region),
        executor=CommandExecutor(config.command),
        polling=config.polling,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(detailed())
        return EXIT_OK

    if not args.command:
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    # A single word is already a shell string; several are argv words to quote
    command = args.command[0] if len(args.command) == 1 else shlex.join(args.command)

    # Load config (no logging until config is loaded)
    try:
        config = apply_overrides(
            load_config(args.config),
            interval_seconds=args.interval,
            timeout_seconds=args.timeout,
            log_level=args.log_level,
            log_format=args.log_format,
        )
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(config.logging)
    orchestrator = build_orchestrator(config)

    try:
        orchestrator.run(command)
    except InstanceNotAssignedError as exc:
        logger.warning(
            "Instance is assigned to no load balancers; aborting",
            extra={"instance_id": exc.instance_id},
        )
        return EXIT_NOT_ASSIGNED
    except IdentityError as exc:
        logger.error("Could not resolve instance identity: %s", exc)
        return EXIT_IDENTITY
    except PollTimeoutError as exc:
        logger.error("%s", exc, extra={"phase": exc.phase, "elapsed_seconds": round(exc.elapsed, 2)})
        return EXIT_TIMEOUT
    except RollError as exc:
        logger.error("Fatal error: %s", exc)
        return EXIT_USAGE
    except KeyboardInterrupt:
        logger.warning("Interrupted", extra={"phase": orchestrator.phase.value if orchestrator.phase else None})
        return EXIT_INTERRUPTED

    return EXIT_OK
