"""selfupdate - update the current project in place from a package release.

    Returns:
        int: Exit code
"""
import logging
import os
import sys

from args import parse_args
from cli_config import apply_config, load_config, resolve_package_args
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import SelfUpdateError, TypeMismatchError
from archive.fetcher import DistDownloader
from orchestrator import UpdateOrchestrator
from project import ProjectContext


def setup_logging(args) -> None:
    """Configure logging based on CLI arguments."""
    # Honor CLI --loglevel by passing it to centralized logger via env
    level_name = "ERROR" if getattr(args, "QUIET", False) else str(args.LOG_LEVEL).upper()
    os.environ[Constants.LOG_LEVEL_ENV] = level_name
    configure_logging()
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logging.getLogger(__name__).info("Logging to file: %s", log_file)


def run(args) -> int:
    """Run one update from parsed arguments; return the exit code."""
    logger = logging.getLogger(__name__)
    try:
        cfg = load_config(getattr(args, "CONFIG", None))
        apply_config(cfg)
        resolve_package_args(args, cfg)

        composer_file = None
        if args.PROJECT_DIR:
            composer_file = os.path.join(args.PROJECT_DIR, Constants.COMPOSER_FILE)
        project = ProjectContext.load(composer_file)

        orchestrator = UpdateOrchestrator(
            project=project,
            fetcher=DistDownloader(flatten=not args.NO_FLATTEN),
        )
        return orchestrator.run(args.PACKAGE, args.REQUIRE, args.PROJECT_DIR).value
    except TypeMismatchError as exc:
        logger.critical("Internal error: %s", exc, exc_info=True)
        return exc.exit_code.value
    except SelfUpdateError as exc:
        logger.error("%s", exc)
        return exc.exit_code.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)

    logger = logging.getLogger(__name__)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    code = run(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="main",
                outcome="success" if code == ExitCodes.SUCCESS.value else "failure",
            )
        )
    sys.exit(code)


if __name__ == "__main__":
    main()
