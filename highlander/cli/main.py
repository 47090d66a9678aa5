#!/usr/bin/env python3
# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Highlander CLI.

Usage:
    highlander members            # List running group members, oldest first
    highlander leader             # Show the elected leader
    highlander is-leader          # Exit 0 if this instance is the leader
    highlander run -- CMD [ARGS]  # Run CMD only on the leader

Examples:
    # On an instance of the group, discover the group from its own tags
    highlander --from-self leader

    # From anywhere, for a named group
    highlander --group-name web-asg --region us-east-1 members --json

    # Cron job that must run on exactly one instance of the group
    highlander --from-self run -- /usr/local/bin/rotate-reports
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import subprocess
import sys
from typing import Any, Awaitable, Callable, List, Optional

from highlander.exceptions import HighlanderError
from highlander.provider import AutoScalingGroup, AutoScalingGroupOptions
from highlander.utils.logger import setup_logger

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_LEADER = 3


def get_version() -> str:
    """Get the Highlander version."""
    import highlander
    return getattr(highlander, "__version__", "unknown")


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, default=str))


def print_table(headers: List[str], rows: List[List[str]]) -> None:
    """Print data as a formatted table."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print(" | ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))


def build_options(args: argparse.Namespace) -> AutoScalingGroupOptions:
    """Build provider options from the environment and command line flags.

    Command line flags take precedence over environment variables.
    """
    options = AutoScalingGroupOptions.from_env()

    if args.from_self or args.group_name:
        options.configure_from_self = args.from_self
        options.configure_from_name = args.group_name or ""
    if args.region:
        options.region = args.region
    if args.profile:
        options.profile = args.profile

    return options


def run_async(body: Callable[[], Awaitable[int]]) -> int:
    """Run an async command body, reporting Highlander errors on stderr."""
    try:
        return asyncio.run(body())
    except HighlanderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_members(args: argparse.Namespace) -> int:
    """List group members in election order."""
    async def run() -> int:
        group = await AutoScalingGroup.from_options(build_options(args))
        members = await group.get_members()

        if args.json:
            print_json({
                "group": group.name,
                "members": [m.to_dict() for m in members],
                "total": len(members),
            })
            return EXIT_OK

        print(f"\n=== Members of {group.name} ({len(members)}) ===\n")
        if members:
            headers = ["Instance ID", "Name", "Launch Time", "AZ", "Private IP"]
            rows = []
            for m in members:
                info = m.to_dict()
                rows.append([
                    info["instance_id"],
                    info["name"] or "N/A",
                    info["launch_time"],
                    info["availability_zone"] or "N/A",
                    info["private_ip_address"] or "N/A",
                ])
            print_table(headers, rows)
        else:
            print("No running members.")
        return EXIT_OK

    return run_async(run)


def cmd_leader(args: argparse.Namespace) -> int:
    """Show the elected leader."""
    async def run() -> int:
        group = await AutoScalingGroup.from_options(build_options(args))
        leader = await group.get_leader()
        info = leader.to_dict()

        if args.json:
            print_json({"group": group.name, "leader": info})
        else:
            print(f"{info['instance_id']} {info['name'] or ''}".rstrip())
        return EXIT_OK

    return run_async(run)


async def _check_leader(args: argparse.Namespace) -> bool:
    group = await AutoScalingGroup.from_options(build_options(args))
    return await group.is_leader(getattr(args, "instance_id", None))


def cmd_is_leader(args: argparse.Namespace) -> int:
    """Exit 0 when the instance is the leader, 3 when it is not."""
    async def run() -> int:
        leader = await _check_leader(args)
        if args.json:
            print_json({"is_leader": leader})
        else:
            print("leader" if leader else "not leader")
        return EXIT_OK if leader else EXIT_NOT_LEADER

    return run_async(run)


def cmd_run(args: argparse.Namespace) -> int:
    """Run a command only when this instance is the leader."""
    command = list(args.cmd)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("Error: no command given", file=sys.stderr)
        return EXIT_ERROR

    async def run() -> int:
        return EXIT_OK if await _check_leader(args) else EXIT_NOT_LEADER

    status = run_async(run)
    if status == EXIT_NOT_LEADER:
        print("Not the leader, skipping command", file=sys.stderr)
        return EXIT_OK
    if status != EXIT_OK:
        return status

    try:
        return subprocess.run(command).returncode
    except OSError as e:
        print(f"Error: can't run {command[0]}: {e}", file=sys.stderr)
        return EXIT_ERROR


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="highlander",
        description="Leader election for EC2 Auto Scaling groups",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_version()}",
    )
    parser.add_argument(
        "--group-name", "-g",
        default=None,
        help="Autoscaling group name (env: HIGHLANDER_GROUP_NAME)",
    )
    parser.add_argument(
        "--from-self",
        action="store_true",
        help="Discover the group from this instance's tags "
             "(env: HIGHLANDER_CONFIGURE_FROM_SELF)",
    )
    parser.add_argument("--region", default=None, help="AWS region")
    parser.add_argument("--profile", default=None, help="AWS profile")
    parser.add_argument(
        "--json", "-j",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    members_parser = subparsers.add_parser("members", help="List group members")
    members_parser.set_defaults(func=cmd_members)

    leader_parser = subparsers.add_parser("leader", help="Show the group leader")
    leader_parser.set_defaults(func=cmd_leader)

    is_leader_parser = subparsers.add_parser(
        "is-leader", help="Exit 0 if this instance is the leader, 3 otherwise"
    )
    is_leader_parser.add_argument(
        "--instance-id",
        default=None,
        help="Instance to check (default: this instance)",
    )
    is_leader_parser.set_defaults(func=cmd_is_leader)

    run_parser = subparsers.add_parser(
        "run", help="Run a command only on the leader"
    )
    run_parser.add_argument("cmd", nargs=argparse.REMAINDER, help="Command to run")
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logger(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    if hasattr(args, "func"):
        return args.func(args)
    else:
        parser.print_help()
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
