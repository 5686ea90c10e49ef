"""Entry point for the ``testafy`` command.

Usage:
    testafy ping
    testafy check script.pbehave
    testafy run script.pbehave                  # submit and wait
    testafy run script.pbehave --no-wait        # submit and return the id
    testafy run script.pbehave --screenshots --save-screenshots ./shots
    testafy status <test_id>
    testafy results <test_id>

Credentials and the service root come from --login/--password/--base-uri
or $TESTAFY_LOGIN_NAME, $TESTAFY_PASSWORD and $TESTAFY_BASE_URI.
"""

import argparse
import asyncio
import base64
import logging
import sys
from pathlib import Path
from typing import Optional

import httpx
import structlog

from testafy.cli.formatter import CLIFormatter
from testafy.client.entity import Test
from testafy.client.models import TestStatus
from testafy.config import ANONYMOUS_LOGIN, AccountMode, TestConfig
from testafy.errors import ConfigurationError, TestafyError

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="testafy",
        description="Run behavioral tests on the Testafy service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--base-uri", help="Service root (default: $TESTAFY_BASE_URI)")
    parser.add_argument("--login", help="Login name (default: $TESTAFY_LOGIN_NAME)")
    parser.add_argument("--password", help="Password (default: $TESTAFY_PASSWORD)")
    parser.add_argument(
        "--try-it-now",
        action="store_true",
        help="Use the anonymous trial tier instead of an account",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log API traffic")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("ping", help="Check connectivity and credentials")

    check = sub.add_parser("check", help="Validate the phrases of a script")
    check.add_argument("script", type=Path)

    run = sub.add_parser("run", help="Run a script")
    run.add_argument("script", type=Path)
    run.add_argument("--no-wait", action="store_true", help="Return once the run is queued")
    run.add_argument("--screenshots", action="store_true", help="Ask the service for screenshots")
    run.add_argument("--save-screenshots", type=Path, metavar="DIR", help="Decode screenshots into DIR")
    run.add_argument("--format", dest="results_format", help="Results format to request")
    run.add_argument("--poll-interval", type=float, help="Seconds between status polls")
    run.add_argument("--max-wait", type=float, help="Give up waiting after this many seconds")

    status = sub.add_parser("status", help="Show the status of an existing run")
    status.add_argument("test_id")

    results = sub.add_parser("results", help="Show stats and TAP results of an existing run")
    results.add_argument("test_id")
    results.add_argument("--format", dest="results_format", help="Results format to request")

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def build_config(args: argparse.Namespace) -> TestConfig:
    overrides = {
        "base_uri": args.base_uri,
        "login_name": args.login,
        "password": args.password,
        "results_format": getattr(args, "results_format", None),
        "poll_interval": getattr(args, "poll_interval", None),
        "max_wait": getattr(args, "max_wait", None),
    }
    if getattr(args, "screenshots", False) or getattr(args, "save_screenshots", None):
        overrides["want_screenshots"] = True
    if getattr(args, "script", None) is not None:
        try:
            overrides["script"] = args.script.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"{args.script}: script is not UTF-8 text") from exc
    if args.try_it_now:
        overrides["login_name"] = ANONYMOUS_LOGIN
        overrides["password"] = ""
        overrides["account_mode"] = AccountMode.ANONYMOUS
    return TestConfig.from_env(**overrides)


def save_screenshots(images: dict[str, Optional[str]], directory: Path) -> dict[str, str]:
    """Decode base64 screenshots into ``directory``; returns name -> path."""
    directory.mkdir(parents=True, exist_ok=True)
    saved = {}
    for name, encoded in images.items():
        if not encoded:
            continue
        target = directory / Path(name).name
        target.write_bytes(base64.b64decode(encoded))
        saved[name] = str(target)
    return saved


async def _show_results(test: Test, fmt: CLIFormatter) -> int:
    stats = await test.stats()
    fmt.print_stats(stats)
    fmt.print_results(await test.results_string())
    return 1 if stats.failed else 0


async def cmd_run(test: Test, args: argparse.Namespace, fmt: CLIFormatter) -> int:
    test_id = await test.submit()
    if test_id is None:
        fmt.error(test.error or test.message or "The service did not return a test id")
        return 1

    fmt.print_submitted(test_id, waiting=not args.no_wait)
    if args.no_wait:
        return 0

    status = await test.wait()
    fmt.print_status(test_id, status)
    code = await _show_results(test, fmt)

    if args.save_screenshots:
        images = await test.fetch_all_screenshots()
        fmt.print_screenshots(save_screenshots(images, args.save_screenshots))

    if status != TestStatus.COMPLETED:
        code = 1
    return code


async def cmd_status(test: Test, args: argparse.Namespace, fmt: CLIFormatter) -> int:
    test.attach(args.test_id)
    status = await test.status()
    fmt.print_status(args.test_id, status)
    if test.message:
        fmt.info(test.message)
    return 0


async def cmd_results(test: Test, args: argparse.Namespace, fmt: CLIFormatter) -> int:
    test.attach(args.test_id)
    return await _show_results(test, fmt)


async def cmd_check(test: Test, args: argparse.Namespace, fmt: CLIFormatter) -> int:
    message = await test.phrase_check()
    fmt.info(message or "(no message)")
    return 0


async def cmd_ping(test: Test, args: argparse.Namespace, fmt: CLIFormatter) -> int:
    message = await test.ping()
    fmt.success(message or "pong")
    return 0


COMMANDS = {
    "run": cmd_run,
    "status": cmd_status,
    "results": cmd_results,
    "check": cmd_check,
    "ping": cmd_ping,
}


async def dispatch(
    args: argparse.Namespace,
    fmt: Optional[CLIFormatter] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> int:
    """Run the selected command and return the process exit code."""
    fmt = fmt or CLIFormatter()
    try:
        config = build_config(args)
        async with Test(config, http_client=http_client) as test:
            return await COMMANDS[args.command](test, args, fmt)
    except TestafyError as exc:
        await logger.aerror("testafy_command_failed", command=args.command, error=str(exc))
        fmt.error(str(exc))
        return 1
    except OSError as exc:
        fmt.error(f"{exc.filename or 'file'}: {exc.strerror or exc}")
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        return asyncio.run(dispatch(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
