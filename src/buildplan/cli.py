# src/buildplan/cli.py

import argparse
import os
import platform
import sys
from difflib import get_close_matches
from pathlib import Path

from apathetic_logging import safeLog

from .constants import DEFAULT_ENV_JOBS, DEFAULT_JOBS, DEFAULT_OUTPUT_FORMAT
from .emit import EMITTERS, get_emitter
from .errors import BuildPlanError
from .logs import LOG_LEVEL_CHOICES, get_app_logger
from .meta import PROGRAM_DISPLAY, PROGRAM_ENV, PROGRAM_SCRIPT, get_metadata
from .planner import (
    FactoryResolver,
    ImportingFactoryResolver,
    SyntaxFactoryResolver,
    plan_workspace,
)


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # argparse reports bad flags as "unrecognized arguments: --fromat ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(arg, known_opts, n=1, cutoff=0.6)
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(
        prog=PROGRAM_SCRIPT,
        description="Compute the ordered builder plan of a package workspace.",
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        metavar="ROOT",
        help="Root package directory (default: current directory).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=sorted(EMITTERS),
        default=DEFAULT_OUTPUT_FORMAT,
        dest="output_format",
        help=f"Plan output format (default: {DEFAULT_OUTPUT_FORMAT}).",
    )
    parser.add_argument(
        "-o",
        "--out",
        default=None,
        metavar="FILE",
        help="Write the plan to FILE instead of standard output.",
    )
    parser.add_argument(
        "--override",
        action="append",
        default=[],
        metavar="PKG=FILE",
        help=(
            "Replace a package's build.yaml with FILE. "
            "May be given more than once."
        ),
    )
    parser.add_argument(
        "--check-imports",
        action="store_true",
        help="Import every builder module and check its factories exist.",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        metavar="N",
        help=(
            "Number of packages to load concurrently"
            f" (default: ${PROGRAM_ENV}_{DEFAULT_ENV_JOBS} or automatic)."
        ),
    )

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LOG_LEVEL_CHOICES,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    return parser


def _parse_overrides(
    values: list[str],
    parser: argparse.ArgumentParser,
) -> dict[str, Path]:
    overrides: dict[str, Path] = {}
    for value in values:
        name, sep, file = value.partition("=")
        if not sep or not name or not file:
            parser.error(f"--override expects PKG=FILE, got {value!r}")
        path = Path(file)
        overrides[name] = path if path.is_absolute() else Path.cwd() / path
    return overrides


def _determine_jobs(args: argparse.Namespace) -> int | None:
    """Resolve the worker count from CLI → env → default."""
    if args.jobs is not None:
        jobs = args.jobs
    else:
        env_jobs = os.getenv(f"{PROGRAM_ENV}_{DEFAULT_ENV_JOBS}")
        if not env_jobs:
            return DEFAULT_JOBS
        try:
            jobs = int(env_jobs)
        except ValueError as e:
            xmsg = f"{PROGRAM_ENV}_{DEFAULT_ENV_JOBS} must be an integer, got {env_jobs!r}"
            raise ValueError(xmsg) from e
    if jobs < 1:
        xmsg = f"Job count must be at least 1, got {jobs}"
        raise ValueError(xmsg)
    return jobs


# --------------------------------------------------------------------------- #
# Main entry helpers
# --------------------------------------------------------------------------- #


def _initialize_logger(args: argparse.Namespace) -> None:
    """Initialize logger with CLI args, env vars, and defaults."""
    logger = get_app_logger()
    log_level = logger.determineLogLevel(args=args)
    logger.setLevel(log_level)
    logger.trace("[BOOT] log-level initialized: %s", logger.levelName)

    logger.debug(
        "Runtime: Python %s (%s)\n    %s",
        platform.python_version(),
        platform.python_implementation(),
        sys.version.replace("\n", " "),
    )


def main(argv: list[str] | None = None) -> int:
    logger = get_app_logger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)

        # --- Early runtime init (use CLI + env + defaults) ---
        _initialize_logger(args)

        if args.version:
            logger.info("%s", get_metadata())
            return 0

        override_files = _parse_overrides(args.override, parser)
        max_workers = _determine_jobs(args)
        resolver: FactoryResolver = (
            ImportingFactoryResolver() if args.check_imports else SyntaxFactoryResolver()
        )

        root = Path(args.root)
        if not root.is_dir():
            xmsg = f"Root directory not found: {root}"
            raise FileNotFoundError(xmsg)

        plan = plan_workspace(
            root,
            overrides=override_files,
            resolver=resolver,
            max_workers=max_workers,
        )
        rendered = get_emitter(args.output_format).emit(plan)
        if args.out is None:
            sys.stdout.write(rendered)
        else:
            out = Path(args.out)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(rendered, encoding="utf-8")
            logger.info(
                "%s planned %d builder(s) and %d post-process builder(s): %s",
                PROGRAM_DISPLAY,
                len(plan.builder_applications),
                len(plan.post_process_applications),
                out,
            )

    except (BuildPlanError, OSError, ValueError) as e:
        # controlled termination
        try:
            logger.errorIfNotDebug(str(e))
        except Exception:  # noqa: BLE001
            safeLog(f"[FATAL] Logging failed while reporting: {e}")
        return getattr(e, "code", 1) if isinstance(e, BuildPlanError) else 1

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            logger.criticalIfNotDebug("Unexpected internal error: %s", e)
        except Exception:  # noqa: BLE001
            safeLog(f"[FATAL] Logging failed while reporting: {e}")
        return 1

    else:
        return 0
