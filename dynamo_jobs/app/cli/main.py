#!/usr/bin/env python3
"""
dynamo-jobs maintenance CLI
Inspect and prune the jobs table without going through the scheduler
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from botocore.exceptions import BotoCoreError, ClientError
from rich import box
from rich.console import Console
from rich.table import Table

from dynamo_jobs.common.aws_errors import classify_aws_error
from dynamo_jobs.configs.loader import CONFIG_FILE, load_store_config
from dynamo_jobs.core.engine.errors import JobDecodeError
from dynamo_jobs.core.engine.job_store import DynamoJobRepository

console = Console()


def _fmt_ts(value):
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if value else "-"


def render_jobs(jobs, title):
    table = Table(title=title, box=box.SIMPLE, show_header=True, padding=(0, 1))
    table.add_column("Job ID", style="cyan")
    table.add_column("Type", style="white")
    table.add_column("Status", style="white")
    table.add_column("Started", style="white")
    table.add_column("Last Updated", style="white")

    for job in jobs:
        status = job.status.name
        if job.status.name in ("ERROR", "DEAD"):
            status = f"[red]{status}[/red]"
        elif not job.is_stopped:
            status = f"[yellow]{status}[/yellow]"
        table.add_row(
            job.job_id,
            job.job_type,
            status,
            _fmt_ts(job.started),
            _fmt_ts(job.last_updated),
        )

    console.print(table)
    console.print(f"[dim]{len(jobs)} job(s)[/dim]")


def cmd_count(repo, args):
    console.print(repo.size())


def cmd_list(repo, args):
    if args.type:
        jobs = repo.find_latest_by(args.type, args.limit)
        title = f"Latest {args.type} jobs"
    else:
        jobs = repo.find_latest(args.limit)
        title = "Latest jobs"
    render_jobs(jobs, title)


def cmd_stale(repo, args):
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=args.minutes)
    jobs = repo.find_running_without_update_since(cutoff)
    render_jobs(jobs, f"Running jobs without update for {args.minutes} min")


def cmd_prune(repo, args):
    for job_id in args.job_ids:
        if repo.remove_if_stopped(job_id):
            console.print(f"[green]✓[/green] {job_id} removed")
        else:
            console.print(f"[yellow]-[/yellow] {job_id} kept (missing or still running)")


def _non_negative_int(value):
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="dynamo-jobs",
        description="Maintenance commands for the DynamoDB jobs table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:

  dynamo-jobs count
  dynamo-jobs list --type import --limit 5
  dynamo-jobs stale --minutes 30
  dynamo-jobs prune 3f2a... 9c1d...

Config file: {CONFIG_FILE}
        """,
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--table", help="Table name (default from config)")
    parser.add_argument("--profile", help="AWS profile name")
    parser.add_argument("--region", help="AWS region")
    parser.add_argument("--endpoint-url", help="Custom endpoint, e.g. DynamoDB Local")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default from config)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    count = sub.add_parser("count", help="Count stored jobs")
    count.set_defaults(handler=cmd_count)

    list_cmd = sub.add_parser("list", help="List most recently started jobs")
    list_cmd.add_argument("--type", help="Only jobs of this type")
    list_cmd.add_argument("--limit", type=_non_negative_int, default=20, help="Max jobs to show (default: 20)")
    list_cmd.set_defaults(handler=cmd_list)

    stale = sub.add_parser("stale", help="Running jobs that stopped reporting")
    stale.add_argument("--minutes", type=int, default=30, help="Minutes without update (default: 30)")
    stale.set_defaults(handler=cmd_stale)

    prune = sub.add_parser("prune", help="Delete jobs if they have stopped")
    prune.add_argument("job_ids", nargs="+", metavar="JOB_ID")
    prune.set_defaults(handler=cmd_prune)

    return parser


def main(argv=None, repo=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_store_config(
            args.config,
            table_name=args.table,
            profile=args.profile,
            region=args.region,
            endpoint_url=args.endpoint_url,
            log_level=args.log_level,
        )
    except (OSError, ValueError) as exc:
        console.print(f"[red]✗ Invalid configuration:[/red] {exc}")
        return 2

    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if repo is None:
            repo = DynamoJobRepository.from_config(config)
        args.handler(repo, args)
    except (BotoCoreError, ClientError) as exc:
        info = classify_aws_error(exc, config.profile or "", config.table_name)
        console.print(f"[red]✗ {info['error']}[/red]")
        return 1
    except JobDecodeError as exc:
        console.print(f"[red]✗ Corrupt item in {config.table_name}:[/red] {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
