"""Load installable packages from text-based package folders."""

import logging
import os

from constants import Constants
from errors import LoadError, LoadErrorReason
from packages.manifest import parse_package_manifest_file, parse_parameters
from repository.base import PackageHandle, PackageRegistry

logger = logging.getLogger(__name__)


class PackageLoader:
    """Turns ``<repository>/<name>/package.xml`` into a repository package.

    The repository's own loading assumes a fixed repository root; this
    loader binds the package to an arbitrary repository path instead while
    using the same manifest parsing.
    """

    def __init__(self, registry: PackageRegistry):
        self.registry = registry

    def load(self, package_name: str, repository_path: str) -> PackageHandle:
        """Create an installable package from a text-based package.

        Any package already registered under ``package_name`` is removed
        first, so at most one registration per name exists afterwards.

        Raises:
            LoadError: If the folder or manifest is missing, the manifest is
                empty or not XML, or it carries no parameters.
        """
        repository_path = os.path.realpath(repository_path)
        package_path = os.path.realpath(os.path.join(repository_path, package_name))
        package_file = os.path.join(package_path, Constants.MANIFEST_FILE)

        if not os.path.isdir(package_path):
            raise LoadError(LoadErrorReason.PACKAGE_PATH_MISSING, package_path)

        if not os.path.isfile(package_file):
            raise LoadError(LoadErrorReason.MANIFEST_MISSING, package_file)

        existing = self.registry.fetch(package_name)
        if existing is not None:
            logger.info("Removing previously registered package %s", package_name)
            existing.remove()

        dom = parse_package_manifest_file(package_file)
        if dom is None:
            raise LoadError(LoadErrorReason.MANIFEST_UNPARSEABLE, package_file)

        parameters = parse_parameters(dom)
        if not parameters:
            raise LoadError(LoadErrorReason.NO_PARAMETERS, package_file)

        if parameters.name != package_name:
            logger.warning(
                "Manifest %s names package %s; installing it as %s",
                package_file,
                parameters.name,
                package_name,
            )
            parameters.name = package_name

        return self.registry.create_package(repository_path, parameters)
