"""
Duplicate-check CLI.

Runs one matching cycle against the configured directory and reports the
candidates a form would show and whether submission would be blocked.
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog

from customer_match.core.config import get_settings
from customer_match.core.logging import configure_logging
from customer_match.directory import DirectoryConfig, create_directory_client
from customer_match.directory.resilience import CircuitBreaker
from customer_match.matching import MatchingConfig, MatchingSession

logger = structlog.get_logger()

EXIT_PASS = 0
EXIT_ERROR = 1
EXIT_BLOCKED = 2


def print_candidates(session: MatchingSession):
    """Pretty print the published candidate list."""
    candidates = session.candidates
    print(f"\n=== {len(candidates)} Candidate(s) ===\n")
    for candidate in candidates:
        balance = (
            f"  balance {candidate.current_balance:,.2f}"
            if candidate.current_balance is not None
            else ""
        )
        print(f"[{candidate.id}] {candidate.name}  {candidate.phone or '-'}{balance}")


async def check_command(name: str, phone: str) -> int:
    """Run one immediate cycle and print the guard verdict."""
    settings = get_settings()
    directory_config = DirectoryConfig.from_settings(settings)
    client = create_directory_client(directory_config)
    config = MatchingConfig.from_settings(settings).model_copy(update={"debounce_ms": 0})

    session = MatchingSession(
        client,
        config=config,
        circuit_breaker=CircuitBreaker(directory_config.circuit_breaker),
        session_id="cli",
    )
    try:
        session.input_changed(name, phone)
        await session.wait_idle()
        print_candidates(session)

        verdict = session.check_before_create()
        print("\n--- Guard ---")
        if verdict.blocked and verdict.exact_match is not None:
            print(
                "BLOCKED: a customer with this phone number already exists: "
                f"{verdict.exact_match.name} [{verdict.exact_match.id}]"
            )
            return EXIT_BLOCKED
        print("PASS: no customer with this exact phone number")
        return EXIT_PASS
    finally:
        session.dispose()
        await client.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m customer_match.cli",
        description="Check a prospective customer against the directory",
    )
    subparsers = parser.add_subparsers(dest="command")

    check = subparsers.add_parser("check", help="Run one duplicate check")
    check.add_argument("--name", default="", help="Customer name as typed")
    check.add_argument("--phone", default="", help="Phone number as typed")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "check":
        parser.print_help()
        return EXIT_ERROR

    settings = get_settings()
    configure_logging(settings.ENV, debug=settings.DEBUG)

    try:
        return asyncio.run(check_command(args.name, args.phone))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except Exception as e:
        print(f"Error: {str(e)}")
        logger.exception("cli_error", command=args.command)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
