"""Argument parsing functionality for selfupdate."""

import argparse


def build_parser():
    """Build the argument parser (split out so tests can inspect it)."""
    parser = argparse.ArgumentParser(
        prog="selfupdate",
        description=(
            "Update the current project in place from the best matching package release"
        ),
        add_help=True,
    )

    parser.add_argument("package",
                        nargs="?",
                        help="Package name, i.e. acme/tool (defaults to composer.json config)",
                        default=None)
    parser.add_argument("require",
                        nargs="?",
                        help="Version constraint, optionally suffixed with @stability, i.e. ^2.0@beta",
                        default=None)
    parser.add_argument("-p", "--package",
                        dest="PACKAGE",
                        help="Package name (same as the positional argument)",
                        action="store",
                        type=str)
    parser.add_argument("-V", "--require",
                        dest="REQUIRE",
                        help="Version constraint (same as the positional argument)",
                        action="store",
                        type=str)
    parser.add_argument("-d", "--directory",
                        dest="PROJECT_DIR",
                        help="Project directory to update (defaults to the composer.json directory)",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--no-flatten",
                        dest="NO_FLATTEN",
                        help="Keep a single top-level directory of downloaded zip archives",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Only report errors.",
                        action="store_true")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program.

    Option flags win over positionals when both are given.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    args.PACKAGE = args.PACKAGE or args.package
    args.REQUIRE = args.REQUIRE or args.require
    return args
