"""classpkg - content-class package migration tool

    Converts binary content-class packages into text-based package folders
    and installs, uninstalls or replaces packages in a content repository.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from cli_config import create_repository, load_settings
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from errors import (
    ArchiveError,
    ClassPkgError,
    InvalidReference,
    LoadError,
    NotAPackage,
    PatternError,
    RepositoryError,
)
from packages.service import ContentClassPackage

logger = logging.getLogger(__name__)


def _status(ok) -> int:
    return ExitCodes.SUCCESS.value if ok else ExitCodes.OPERATION_FAILED.value


def _load_folder(pkg: ContentClassPackage, path: str) -> None:
    if not pkg.load_from_path(path):
        raise NotAPackage(path, "is not a package folder")


def run_action(args, pkg: ContentClassPackage) -> int:
    """Dispatch the selected sub-command; returns the exit code."""
    action = args.ACTION
    if action == "extract":
        extracted = pkg.extract_and_transform(args.PATTERN)
        logging.info("Extracted %d package(s).", len(extracted))
        return ExitCodes.SUCCESS.value
    if action == "install":
        _load_folder(pkg, args.PATH)
        return _status(pkg.install(check_version=not args.NO_VERSION_CHECK))
    if action == "uninstall":
        _load_folder(pkg, args.PATH)
        return _status(pkg.uninstall())
    if action == "install-binary":
        return _status(pkg.install_binary_package(args.NAME, args.FILE))
    if action == "replace-binary":
        return _status(pkg.replace_binary_package(args.NAME, args.FILE, args.NEW_NAME))
    if action == "remove-binary":
        pkg.remove_binary_package(args.NAME)
        return ExitCodes.SUCCESS.value
    if action == "change-class":
        pkg.change_class_identifier_of_object(args.OBJECT_ID, args.CLASS_IDENTIFIER)
        return ExitCodes.SUCCESS.value
    logging.error("Unknown command: %s", action)
    return ExitCodes.FILE_ERROR.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)

    try:
        settings = load_settings(args)
    except (OSError, ValueError) as e:
        configure_logging(getattr(args, "LOG_LEVEL", None), None, getattr(args, "VERBOSE", False))
        logging.error("Unable to load configuration: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    configure_logging(settings.log_level, settings.log_file, settings.verbose)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action=args.ACTION,
                target=settings.repository_type,
            ),
        )

    try:
        repository = create_repository(settings)
    except ValueError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    pkg = ContentClassPackage(repository, user_id=settings.user_id, defaults=settings.install)

    try:
        code = run_action(args, pkg)
    except (NotAPackage, PatternError, LoadError, ArchiveError) as e:
        logging.error("%s", e)
        code = ExitCodes.FILE_ERROR.value
    except InvalidReference as e:
        logging.error("%s", e)
        code = ExitCodes.INVALID_REFERENCE.value
    except RepositoryError as e:
        logging.error("Repository error: %s", e)
        code = ExitCodes.CONNECTION_ERROR.value
    except ClassPkgError as e:
        logging.error("%s", e)
        code = ExitCodes.OPERATION_FAILED.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action=args.ACTION,
                outcome="success" if code == ExitCodes.SUCCESS.value else "failure",
            ),
        )
    sys.exit(code)


if __name__ == "__main__":
    main()
