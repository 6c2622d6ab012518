"""CLI for inspecting and maintaining the local JSON run store."""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from actions_dispatcher import __version__
from actions_dispatcher.config import DispatcherSettings
from actions_dispatcher.errors import RunStoreError
from actions_dispatcher.logging import configure_logging
from actions_dispatcher.models import Run, Schedule
from actions_dispatcher.store.json_store import JsonRunStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="actions-dispatcher",
        description="Inspect runs and schedules created by the actions dispatcher",
    )
    parser.add_argument(
        "--version", action="version", version=f"actions-dispatcher {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    runs = subparsers.add_parser("runs", help="List runs")
    runs.add_argument("--repo-id", type=int, default=None, help="Only runs of this repository")

    schedules = subparsers.add_parser("schedules", help="List schedules")
    schedules.add_argument(
        "--repo-id", type=int, default=None, help="Only schedules of this repository"
    )

    approve = subparsers.add_parser(
        "approve-run", help="Approve a run that is waiting for maintainer approval"
    )
    approve.add_argument("--run-id", type=int, required=True, help="Run to approve")
    approve.add_argument(
        "--approver-id", type=int, required=True, help="User id of the approving maintainer"
    )

    clean = subparsers.add_parser("clean-schedules", help="Remove all schedules of a repository")
    clean.add_argument("--repo-id", type=int, required=True, help="Repository id")

    return parser


def _format_run(run: Run) -> str:
    flags = []
    if run.is_fork_pull_request:
        flags.append("fork")
    if run.need_approval:
        flags.append("needs-approval")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return (
        f"#{run.id} {run.workflow_id} {run.event.value} {run.ref} "
        f"{run.commit_sha[:10]} {run.status.value}{suffix}: {run.title}"
    )


def _format_schedule(schedule: Schedule) -> str:
    return (
        f"#{schedule.id} repo={schedule.repo_id} {schedule.workflow_id} "
        f"{' | '.join(schedule.specs)}"
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = DispatcherSettings()
    except ValidationError as e:
        # Logging isn't configured yet.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    store = JsonRunStore(settings.run_store_path)

    try:
        if args.command == "runs":
            for run in store.list_runs(repo_id=args.repo_id):
                print(_format_run(run))
            return 0

        if args.command == "schedules":
            for schedule in store.list_schedules(repo_id=args.repo_id):
                print(_format_schedule(schedule))
            return 0

        if args.command == "approve-run":
            run = store.approve_run(args.run_id, args.approver_id)
            logger.info(
                "Run approved", extra={"run_id": run.id, "approver_id": args.approver_id}
            )
            print(f"Approved run #{run.id}: {run.title}")
            return 0

        if args.command == "clean-schedules":
            store.clean_repo_schedules(args.repo_id)
            print(f"Removed schedules of repository {args.repo_id}")
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except KeyError as e:
        print(f"No such run: {e.args[0]}", file=sys.stderr)
        return 3

    except RunStoreError as e:
        logger.error(str(e), extra={"path": str(settings.run_store_path)})
        print(str(e), file=sys.stderr)
        return 1

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
