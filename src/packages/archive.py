"""Binary package (.ezpkg) extraction.

A binary package is a gzip-compressed tar holding the same tree as a
text-based package: package.xml at the top and the class definitions
below ezcontentclass/.
"""
from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
import zlib

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from errors import ArchiveError
from packages.manifest import parse_manifest_bytes, parse_parameters
from packages.models import PackageParameters
from packages.paths import package_name_from_archive_filename, package_path_from_archive_filename

logger = logging.getLogger(__name__)

_CODEC_ERRORS = (tarfile.TarError, zlib.error, EOFError, OSError)


def _open(archive_file: str) -> tarfile.TarFile:
    try:
        return tarfile.open(archive_file, mode="r:*")
    except _CODEC_ERRORS as e:
        raise ArchiveError(archive_file, f"Unable to read archive ({e})") from e


def extract_archive(archive_file: str, destination_dir: str) -> None:
    """Extract a binary package into ``destination_dir``.

    The archive is unpacked into a staging folder beside the destination
    first and then merged over it, replacing files of the same name. The
    source archive is only read.

    Raises:
        ArchiveError: If the destination names no package, the archive is
            missing, or it cannot be read.
    """
    destination_dir = os.path.normpath(destination_dir) if destination_dir else ""
    if not destination_dir or not os.path.basename(destination_dir) or destination_dir in (".", os.sep):
        raise ArchiveError(archive_file, "Empty is not a valid package-name")

    if not os.path.isfile(archive_file):
        raise ArchiveError(archive_file, "File does not exist")

    parent = os.path.dirname(os.path.abspath(destination_dir))
    os.makedirs(parent, exist_ok=True)

    with Timer() as t:
        staging = tempfile.mkdtemp(prefix=".classpkg-", dir=parent)
        try:
            with _open(archive_file) as tar:
                try:
                    tar.extractall(staging, filter="data")
                except tarfile.FilterError as e:
                    raise ArchiveError(archive_file, f"Refusing unsafe archive member ({e})") from e
                except _CODEC_ERRORS as e:
                    raise ArchiveError(archive_file, f"Unable to extract archive ({e})") from e
            os.makedirs(destination_dir, exist_ok=True)
            shutil.copytree(staging, destination_dir, dirs_exist_ok=True)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    if is_debug_enabled(logger):
        logger.debug(
            "Archive extracted",
            extra=extra_context(
                event="extract",
                component="archive",
                action="extract_archive",
                outcome="success",
                target=destination_dir,
                duration_ms=t.duration_ms(),
            ),
        )


def extract_single_package(file_name: str) -> str:
    """Extract one binary package next to itself, into a folder named after the package.

    Args:
        file_name (str): The .ezpkg file (no wildcards).

    Returns:
        str: The package folder the archive was extracted into.
    """
    file_name = os.path.realpath(file_name)
    if not package_name_from_archive_filename(file_name):
        raise ArchiveError(file_name, "Empty is not a valid package-name")
    package_path = package_path_from_archive_filename(file_name)

    logger.info("Extracting Binary Package %s", file_name)
    extract_archive(file_name, package_path)
    return package_path


def read_archive_manifest(archive_file: str) -> PackageParameters:
    """Read the package parameters of a binary package without extracting it.

    Raises:
        ArchiveError: If the archive is missing, unreadable, or carries no
            usable package.xml.
    """
    if not os.path.isfile(archive_file):
        raise ArchiveError(archive_file, "File does not exist")

    with _open(archive_file) as tar:
        try:
            member = None
            for candidate in tar.getmembers():
                if os.path.normpath(candidate.name) == Constants.MANIFEST_FILE and candidate.isfile():
                    member = candidate
                    break
            if member is None:
                raise ArchiveError(archive_file, f"Archive holds no {Constants.MANIFEST_FILE}")
            fh = tar.extractfile(member)
            data = fh.read() if fh is not None else b""
        except _CODEC_ERRORS as e:
            raise ArchiveError(archive_file, f"Unable to read archive ({e})") from e

    root = parse_manifest_bytes(data, source=archive_file)
    params = parse_parameters(root) if root is not None else None
    if params is None:
        raise ArchiveError(archive_file, f"Archive {Constants.MANIFEST_FILE} is empty or has no parameters")
    return params
