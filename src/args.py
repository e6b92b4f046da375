"""Argument parsing functionality for classpkg."""

import argparse
from constants import Constants


def _add_global_options(parser):
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--repository",
                        dest="REPOSITORY",
                        help="Repository adapter to use (default: local)",
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_REPOSITORIES)
    parser.add_argument("--repository-path",
                        dest="REPOSITORY_PATH",
                        help="State directory of the local repository",
                        action="store",
                        type=str)
    parser.add_argument("--repository-url",
                        dest="REPOSITORY_URL",
                        help="Base URL of the remote repository API",
                        action="store",
                        type=str)
    parser.add_argument("--user-id",
                        dest="USER_ID",
                        help="Id of the user packages are installed as",
                        action="store",
                        type=str)
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Print progress to the console.",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the console logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    log_group = parser.add_mutually_exclusive_group()
    log_group.add_argument("--logfile",
                           dest="LOG_FILE",
                           help=f"Diagnostic log file (default: {Constants.DEFAULT_LOG_FILE})",
                           action="store",
                           type=str)
    log_group.add_argument("--no-logfile",
                           dest="NO_LOG_FILE",
                           help="Do not write a diagnostic log file.",
                           action="store_true")


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="classpkg",
        description=(
            "classpkg - convert content-class packages between binary and "
            "text form and install them into a content repository"
        ),
        add_help=True,
    )
    _add_global_options(parser)

    sub = parser.add_subparsers(dest="ACTION", metavar="<command>")
    sub.required = True

    extract = sub.add_parser("extract",
                             help="Explode binary packages into folders and transform their class definitions")
    extract.add_argument("PATTERN",
                         help="Binary package file, may contain wildcards (quote it)",
                         type=str)

    install = sub.add_parser("install", help="Install a text-based package folder")
    install.add_argument("PATH", help="The package folder (holding package.xml)", type=str)
    install.add_argument("--no-version-check",
                         dest="NO_VERSION_CHECK",
                         help="Install every class, even if the installed one is as new.",
                         action="store_true")

    uninstall = sub.add_parser("uninstall", help="Uninstall a text-based package folder")
    uninstall.add_argument("PATH", help="The package folder (holding package.xml)", type=str)

    install_bin = sub.add_parser("install-binary", help="Install a binary package")
    install_bin.add_argument("NAME", help="Name to register the package under", type=str)
    install_bin.add_argument("FILE", help="The .ezpkg file", type=str)

    replace_bin = sub.add_parser("replace-binary", help="Replace a binary package with another")
    replace_bin.add_argument("NAME", help="Name of the package to replace", type=str)
    replace_bin.add_argument("FILE", help="The new .ezpkg file", type=str)
    replace_bin.add_argument("--new-name",
                             dest="NEW_NAME",
                             help="Register the new package under this name",
                             action="store",
                             type=str)

    remove_bin = sub.add_parser("remove-binary", help="Remove a registered package")
    remove_bin.add_argument("NAME", help="Package name", type=str)

    change = sub.add_parser("change-class", help="Change the content class of an object")
    change.add_argument("OBJECT_ID", help="Content object id", type=str)
    change.add_argument("CLASS_IDENTIFIER", help="New class identifier", type=str)

    return parser.parse_args(argv)
