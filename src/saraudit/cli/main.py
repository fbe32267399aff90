"""
Command-line interface for the saraudit telemetry audit.

Two commands are provided: `sar` (the default) analyzes the newest sysstat
activity files, `atop` aggregates per-process top lists from atop raw logs.
The report goes to stdout; logs go to stderr.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..analysis import AuditRun
from ..atop import AtopAudit, render_atop_report
from ..config import DEFAULT_CONFIG_FILE_PATH, load_config
from ..models.config import AuditConfig
from ..reporting import export_artifacts, render_report
from ..validation import (
    ConfigurationError,
    ErrorSeverity,
    ValidationError,
    handle_cli_error,
    handle_error,
    validate_boolean,
)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
COMMANDS = ("sar", "atop")

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c",
        "--config",
        type=Path,
        help=f"TOML configuration file (default: {DEFAULT_CONFIG_FILE_PATH}, optional).",
    )
    common.add_argument("--start", help="Window start time of day, HH:MM[:SS].")
    common.add_argument(
        "--end", help="Window end time of day, HH:MM[:SS]. Equal to --start for the full day."
    )
    common.add_argument("--audit-dir", type=Path, help="Directory for the summary and the archive.")
    common.add_argument("--no-summary", action="store_true", help="Do not write the summary file.")
    common.add_argument("--no-archive", action="store_true", help="Do not create the archive.")
    common.add_argument("--debug", action="store_true", help="Verbose logging.")

    parser = argparse.ArgumentParser(
        prog="sar-audit",
        description="Rank the worst moments recorded in system activity telemetry.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    sar = subparsers.add_parser(
        "sar", parents=[common], help="Analyze sysstat sa[NN] files (default)."
    )
    sar.add_argument("files", nargs="*", type=Path, help="Explicit activity files to analyze.")
    sar.add_argument("--max-files", help="Number of newest activity files to analyze.")
    sar.add_argument("--top-n", help="Size of each ranked list.")
    sar.add_argument(
        "--sa-dir",
        action="append",
        type=Path,
        help="Directory with sa[NN] files; may be repeated.",
    )
    sar.add_argument("--include-lo", action="store_true", help="Include the loopback interface.")
    sar.add_argument("--no-inventory", action="store_true", help="Skip the lsblk/lvs reference block.")
    sar.add_argument(
        "--link-speed",
        action="append",
        metavar="IFACE=MBPS",
        help="Link speed of an interface in Mbps; may be repeated.",
    )

    atop = subparsers.add_parser(
        "atop", parents=[common], help="Aggregate top processes from atop raw logs."
    )
    atop.add_argument("--log-path", type=Path, help="atop log directory or a single atop log.")
    atop.add_argument("--top-n", help="Commands listed per hour and per day.")

    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or (args[0] not in COMMANDS and args[0] not in ("-h", "--help", "--version")):
        args.insert(0, "sar")
    return build_parser().parse_args(args)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate given command-line flags into the TOML configuration layout.

    Only flags the user actually passed appear, so lower layers keep
    their values otherwise.
    """
    overrides: Dict[str, Dict[str, Any]] = {}

    def put(section: str, key: str, value: Any) -> None:
        overrides.setdefault(section, {})[key] = value

    if args.start is not None:
        put("window", "start", args.start)
    if args.end is not None:
        put("window", "end", args.end)
    if args.audit_dir is not None:
        put("output", "audit_dir", str(args.audit_dir))
    if args.no_summary:
        put("output", "write_summary", False)
    if args.no_archive:
        put("output", "create_archive", False)
    if args.debug:
        put("report", "debug", True)

    if args.command == "sar":
        if args.max_files is not None:
            put("source", "max_files", args.max_files)
        if args.top_n is not None:
            put("report", "top_n", args.top_n)
        if args.sa_dir:
            put("source", "sa_dirs", [str(d) for d in args.sa_dir])
        if args.include_lo:
            put("report", "include_loopback", True)
        if args.no_inventory:
            put("report", "include_inventory", False)
        if args.link_speed:
            put("network", "link_speeds_cli", ",".join(args.link_speed))
    else:
        if args.log_path is not None:
            put("atop", "log_path", str(args.log_path))
        if args.top_n is not None:
            put("atop", "top_n", args.top_n)

    return overrides


def load_run_config(args: argparse.Namespace) -> AuditConfig:
    explicit = args.config is not None
    config_path = args.config if explicit else DEFAULT_CONFIG_FILE_PATH
    return load_config(config_path, overrides=build_overrides(args), require_file=explicit)


def run_sar(args: argparse.Namespace, config: AuditConfig) -> int:
    run = AuditRun(config, files=args.files or None)
    results = run.run()
    sys.stdout.write(render_report(results, debug=config.report.debug))
    sys.stdout.flush()

    output = config.output
    try:
        export_artifacts(
            results,
            summary_path=output.summary_path if output.write_summary else None,
            archive_path=output.archive_path if output.create_archive else None,
            summary_lines=output.summary_lines,
        )
    except OSError as e:
        handle_error(e, "writing run artifacts", severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
    return 0


def run_atop(args: argparse.Namespace, config: AuditConfig) -> int:
    audit = AtopAudit(config)
    results = audit.run()
    text = render_atop_report(results, config.atop.top_n)
    sys.stdout.write(text)
    sys.stdout.flush()
    try:
        audit.write_artifacts(results, text)
    except OSError as e:
        handle_error(e, "writing atop artifacts", severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
    return 0


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Entry point of the `sar-audit` command.

    Configuration problems stop the run before any file is read and exit
    with status 1. Everything else is reported inside the report text.

    Raises:
        SystemExit: With the process exit status.
    """
    args = parse_arguments(argv)

    try:
        env_debug = validate_boolean(os.environ.get("DEBUG", "0"), field_name="DEBUG")
    except ValidationError:
        env_debug = False
    setup_logging(args.debug or env_debug)

    try:
        config = load_run_config(args)
    except ConfigurationError as e:
        handle_cli_error(e, "configuration loading", exit_code=1, logger=logger)

    if config.report.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    logger.debug(f"Running '{args.command}' with window {config.window.label}")

    try:
        status = run_atop(args, config) if args.command == "atop" else run_sar(args, config)
    except KeyboardInterrupt:
        logger.warning("Interrupted, no report written")
        sys.exit(130)
    sys.exit(status)


if __name__ == "__main__":
    main_cli()
