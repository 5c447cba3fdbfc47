"""Argument parsing functionality for aurora-conan-cli."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="aurora-conan-cli",
        description=(
            "Resolve Aurora Conan dependencies and vendor them into thirdparty/ "
            "without the conan client"
        ),
        add_help=True,
    )

    parser.add_argument("-C", "--project-root",
                        dest="PROJECT_ROOT",
                        help="Project directory (default: current directory)",
                        action="store", type=str,
                        default=".")
    parser.add_argument("--arch",
                        dest="ARCH",
                        help="Sync a single architecture (strict mode), i.e: armv8, aarch64, x86_64",
                        action="store", type=str)
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML config file",
                        action="store", type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Write project metadata (modules, shared library patterns) as JSON",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    commands = parser.add_subparsers(dest="COMMAND", required=True, metavar="COMMAND")

    versions = commands.add_parser("versions", help="List versions of a package")
    versions.add_argument("dependency")

    search = commands.add_parser("search", help="Search packages by name")
    search.add_argument("dependency")

    deps = commands.add_parser("deps", help="Resolve transitive dependencies of name/version")
    deps.add_argument("dependency")
    deps.add_argument("version")

    download = commands.add_parser("download", help="Download all binary archives of name/version")
    download.add_argument("dependency")
    download.add_argument("version")

    add = commands.add_parser("add", help="Add a direct dependency and sync the store")
    add.add_argument("dependency")
    add.add_argument("version", nargs="?")

    remove = commands.add_parser("remove", help="Remove a direct dependency and sync the store")
    remove.add_argument("dependency")

    commands.add_parser("sync", help="Rebuild the store from the manifest")

    return parser.parse_args(argv)
