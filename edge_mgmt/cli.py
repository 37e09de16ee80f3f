"""CLI entry point for edge-mgmt.

Handles argument parsing and dispatches to the org, developers or invites
subcommand. Results are printed to stdout as JSON; errors go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from edge_mgmt.config_loader import ConfigError, load_client_config
from edge_mgmt.models import ClientConfig, DiagnosticRecord


DEFAULT_TIMEOUT = 30.0


def positive_float(value: str) -> float:
    """Parse and validate a positive float value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive number.
    """
    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'.")
    if result <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got {result}.")
    return result


@dataclass
class OrgArgs:
    """Parsed arguments for the org subcommand."""

    config: Path
    debug: bool
    timeout: float | None
    org_name: str | None


@dataclass
class DevelopersArgs:
    """Parsed arguments for the developers subcommand."""

    config: Path
    debug: bool
    timeout: float | None
    detail: bool


@dataclass
class InvitesArgs:
    """Parsed arguments for the invites subcommand."""

    config: Path
    debug: bool
    timeout: float | None
    company_id: str | None
    developer_id: str | None
    state: str | None


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to client configuration file (YAML)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print the diagnostic record of every call to stderr",
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        metavar="SECONDS",
        help=f"Timeout for each API call (default: from config, else {DEFAULT_TIMEOUT}s)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with org, developers and invites subcommands."""
    parser = argparse.ArgumentParser(
        prog="edge-mgmt",
        description="Read organizations, developers and company invite requests from the Management API.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    org_parser = subparsers.add_parser("org", help="Show organization details")
    _add_common_arguments(org_parser)
    org_parser.add_argument(
        "--name",
        type=str,
        default=None,
        dest="org_name",
        help="Organization to load (default: org_name from config)",
    )

    developers_parser = subparsers.add_parser("developers", help="List developers")
    _add_common_arguments(developers_parser)
    developers_parser.add_argument(
        "--detail",
        action="store_true",
        default=False,
        help="Return full developer records instead of email addresses",
    )

    invites_parser = subparsers.add_parser("invites", help="List company invite requests")
    _add_common_arguments(invites_parser)
    scope = invites_parser.add_mutually_exclusive_group()
    scope.add_argument("--company", type=str, default=None, dest="company_id", help="Company ID")
    scope.add_argument("--developer", type=str, default=None, dest="developer_id", help="Developer ID")
    invites_parser.add_argument("--state", type=str, default=None, help="Only requests in this state")

    return parser


def parse_args(args: list[str] | None = None) -> OrgArgs | DevelopersArgs | InvitesArgs:
    """Parse command-line arguments and return typed args dataclass.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "org":
        return OrgArgs(
            config=namespace.config,
            debug=namespace.debug,
            timeout=namespace.timeout,
            org_name=namespace.org_name,
        )
    elif namespace.command == "developers":
        return DevelopersArgs(
            config=namespace.config,
            debug=namespace.debug,
            timeout=namespace.timeout,
            detail=namespace.detail,
        )
    elif namespace.command == "invites":
        return InvitesArgs(
            config=namespace.config,
            debug=namespace.debug,
            timeout=namespace.timeout,
            company_id=namespace.company_id,
            developer_id=namespace.developer_id,
            state=namespace.state,
        )
    else:
        # Should not happen with required=True on subparsers
        parser.error(f"Unknown command: {namespace.command}")


def print_debug_record(record: DiagnosticRecord) -> None:
    """Debug callback: dump one diagnostic record to stderr."""
    print(json.dumps(record.model_dump(), indent=2, default=str), file=sys.stderr)


def _load_config(args: OrgArgs | DevelopersArgs | InvitesArgs) -> ClientConfig:
    overrides: dict[str, Any] = {}
    if args.debug:
        overrides["debug_callbacks"] = [print_debug_record]
    config = load_client_config(args.config, **overrides)
    if args.timeout is not None:
        http_options = config.http_options.model_copy(update={"timeout": args.timeout})
        config = config.model_copy(update={"http_options": http_options})
    return config


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, default=str))


def run_org(args: OrgArgs, config: ClientConfig) -> int:
    from edge_mgmt.organization import Organization

    with Organization(config) as org:
        info = org.load(args.org_name)
    _print_json(info.model_dump(by_alias=True))
    return 0


def run_developers(args: DevelopersArgs, config: ClientConfig) -> int:
    from edge_mgmt.developer import Developer

    with Developer(config) as developer:
        if args.detail:
            _print_json([d.model_dump(by_alias=True) for d in developer.getListDetail()])
        else:
            _print_json(developer.getList())
    return 0


def run_invites(args: InvitesArgs, config: ClientConfig) -> int:
    from edge_mgmt.company_invite_request import CompanyInviteRequest

    with CompanyInviteRequest(config) as requests:
        if args.company_id:
            invites = requests.getAllRequestsForCompany(args.company_id, args.state)
        elif args.developer_id:
            invites = requests.getAllRequestsForDeveloper(args.developer_id, args.state)
        else:
            invites = requests.getAllRequestsForOrg()
    _print_json([invite.model_dump(by_alias=True) for invite in invites])
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    from edge_mgmt.executor import ApiFailure, TransportFailure

    try:
        parsed = parse_args(argv)

        try:
            config = _load_config(parsed)
        except ConfigError as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            return 1

        try:
            if isinstance(parsed, OrgArgs):
                return run_org(parsed, config)
            elif isinstance(parsed, DevelopersArgs):
                return run_developers(parsed, config)
            else:
                return run_invites(parsed, config)
        except ApiFailure as e:
            print(f"Error: {e.message}", file=sys.stderr)
            print(f"  {e.status_message}", file=sys.stderr)
            return 1
        except TransportFailure as e:
            print(f"Error: {e.message} ({e.uri})", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
