"""Resolve package names and repository paths from directories and filenames."""

import logging
import os
from typing import Tuple

from constants import Constants
from errors import NotAPackage
from packages.models import ArchiveName, ArchiveNameKind

logger = logging.getLogger(__name__)


def resolve_from_directory(path: str) -> Tuple[str, str]:
    """Split a text-based package directory into (repository path, package name).

    Args:
        path (str): The package folder; the last segment is the package name.

    Raises:
        NotAPackage: If the path is not a folder or holds no package.xml.

    Returns:
        tuple: (repository path, package name)
    """
    path = os.path.realpath(path)

    if not os.path.isdir(path):
        raise NotAPackage(path, "is not a folder!")

    if not os.path.isfile(os.path.join(path, Constants.MANIFEST_FILE)):
        raise NotAPackage(path, "is not a package!")

    repo_path, package_name = os.path.split(path)
    return repo_path, package_name


def parse_archive_filename(file_name: str) -> ArchiveName:
    """Derive the package name from a binary package filename.

    ``mypackage-1.1-1.ezpkg`` and ``mypackage.ezpkg`` both yield
    ``mypackage``. The filename is split on ``-``; with fewer than two
    segments it is split on ``.`` instead and the extension dropped. The
    first segment is the name.
    """
    base = os.path.basename(file_name)

    parts = base.split("-")
    hyphenated = len(parts) >= 2
    if not hyphenated:
        parts = base.split(".")
        parts.pop()

    if not parts or not parts[0]:
        return ArchiveName(ArchiveNameKind.UNPARSEABLE)

    name = parts[0]
    if not hyphenated:
        return ArchiveName(ArchiveNameKind.NAME, name)

    suffix = "." + Constants.ARCHIVE_EXTENSION
    segments = list(parts)
    if segments[-1].endswith(suffix):
        segments[-1] = segments[-1][: -len(suffix)]
    # Only <name>-<digit...>-<release> is unambiguous; anything else may be a hyphenated name
    if len(segments) != 3 or not segments[1][:1].isdigit():
        logger.debug("Archive name %s is ambiguous; using %s", base, name)
        return ArchiveName(ArchiveNameKind.NAME, name, ambiguous=True)
    return ArchiveName(ArchiveNameKind.NAME, name, segments[1], segments[2] or None)


def package_name_from_archive_filename(file_name: str) -> str:
    """Package name for a binary package filename, or "" if none can be derived."""
    return parse_archive_filename(file_name).name


def package_path_from_archive_filename(file_name: str) -> str:
    """Folder a binary package is exploded into: next to the archive, named after the package."""
    repo = os.path.dirname(file_name)
    return os.path.join(repo, package_name_from_archive_filename(file_name))
