import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hoptocopter import __version__
from hoptocopter.badge import badge_url
from hoptocopter.config import DEFAULT_CONFIG_FILE, ConfigError, load_config
from hoptocopter.coverage import percent_covered, report_percent, round_percent, status_color
from hoptocopter.profile import ProfileParseError, parse_profiles

console = Console()
logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


# --- COMMANDS ---


def display_report(path, profiles, shield_url=None):
    total = report_percent(profiles)
    rounded = round_percent(total)
    color = status_color(rounded)
    table = Table(title=f"Coverage Report: [bold]{path}[/bold]")
    table.add_column("File", style="cyan")
    table.add_column("Statements", justify="right")
    table.add_column("Covered", justify="right")
    table.add_column("Percent", justify="right")
    for p in profiles:
        table.add_row(
            p.file_name,
            str(p.num_statements),
            str(p.covered_statements),
            f"{percent_covered(p):.1f}%",
        )
    table.add_section()
    table.add_row(
        "[bold]total[/bold]",
        str(sum(p.num_statements for p in profiles)),
        str(sum(p.covered_statements for p in profiles)),
        f"[{color}]{total:.1f}%[/{color}]",
    )
    console.print(table)
    if shield_url:
        console.print(f"Badge: {badge_url(shield_url, rounded)}")


def report(args) -> int:
    try:
        profiles = parse_profiles(args.profile)
    except OSError as e:
        console.print(f"❌ [red]Unable to read {args.profile}: {e}[/red]")
        return 1
    except ProfileParseError as e:
        console.print(f"❌ [red]Error parsing {args.profile}: {e}[/red]")
        return 1
    display_report(args.profile, profiles, args.shield_url)
    return 0


def serve(args) -> int:
    # imported here so `report` works without the server stack loaded
    import uvicorn

    from hoptocopter.server import create_app

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.critical("%s, exiting...", e)
        return 1

    app = create_app(config)
    logger.info("running without SSL enabled")
    uvicorn.run(app, host=args.host, port=int(config.listen_port), log_config=None)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="hoptocopter",
        description=f"hoptocopter v{__version__}: coverage badges for Go coverage profiles",
    )
    parser.add_argument("--version", action="version", version=f"hoptocopter v{__version__}")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", help="hoptocopter commands")

    serve_p = subparsers.add_parser("serve", help="Run the upload/display HTTP service")
    serve_p.add_argument(
        "-c", "--config", default=DEFAULT_CONFIG_FILE, help="config file location"
    )
    serve_p.add_argument("--host", default="0.0.0.0", help="Address to bind")

    report_p = subparsers.add_parser("report", help="Summarise a local coverage profile")
    report_p.add_argument("profile", help="Path to a coverage profile (coverage.out)")
    report_p.add_argument("--shield-url", help="Also print the badge URL for this shield server")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        sys.exit(serve(args))
    elif args.command == "report":
        sys.exit(report(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
