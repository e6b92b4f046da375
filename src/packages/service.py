"""Text-based and binary content-class package handling.

ContentClassPackage wraps a text-based package (a package folder holding
package.xml and ezcontentclass/class-*.xml) and offers the operations
around it: exploding binary packages into folders, installing and
uninstalling folders, managing binary packages and re-classing objects.
"""

from __future__ import annotations

import glob
import logging
import os
from typing import List, Optional

from constants import Constants
from errors import ClassDefinitionMissing, NotAPackage, PatternError, TransformError
from packages import archive, paths, reassign, scanner
from packages.installer import Installer
from packages.loader import PackageLoader
from packages.models import InstallDefaults, InstallParameters
from packages.transform import XmlPrettyPrintTransformer
from repository.base import ClassDefinitionTransformer, PackageHandle, Repository

logger = logging.getLogger(__name__)


class ContentClassPackage:
    """Operations on one text-based package and on binary packages.

    Args:
        repository: The content repository to install into.
        user_id: The principal installs and uninstalls run as.
        transformer: Applied to every class definition after extraction.
        defaults: Installation maps; built-in defaults if omitted.
    """

    def __init__(
        self,
        repository: Repository,
        user_id=Constants.DEFAULT_USER_ID,
        transformer: Optional[ClassDefinitionTransformer] = None,
        defaults: Optional[InstallDefaults] = None,
    ):
        self.repository = repository
        self.transformer = transformer or XmlPrettyPrintTransformer()
        self.loader = PackageLoader(repository.packages)
        self.installer = Installer(repository.packages, user_id, defaults)
        self._package_name = ""
        self._repo_path = ""

    @property
    def package_name(self) -> str:
        return self._package_name

    @property
    def repository_path(self) -> str:
        return self._repo_path

    def load(self, repository_path: str, package_name: str) -> None:
        """Select the package folder ``<repository_path>/<package_name>``."""
        self._repo_path = repository_path
        self._package_name = package_name

    def load_from_path(self, path: str) -> bool:
        """Select a package by its folder; the last segment is the package name."""
        try:
            self._repo_path, self._package_name = paths.resolve_from_directory(path)
        except NotAPackage as e:
            logger.warning("%s", e)
            return False
        return True

    def extract_and_transform(self, file_pattern: str) -> List[str]:
        """Explode binary packages matching a (wildcard) pattern and transform their class definitions.

        Files without the .ezpkg extension are skipped. A class definition
        that vanished or cannot be transformed stops that package only; the
        remaining files are still processed.

        Raises:
            PatternError: If the pattern matches no files.
            ArchiveError: If an archive cannot be extracted.

        Returns:
            list: The package folders that were extracted.
        """
        files = sorted(glob.glob(file_pattern))
        if not files:
            raise PatternError(file_pattern)

        extracted = []
        for file in files:
            if not file.endswith("." + Constants.ARCHIVE_EXTENSION) or not os.path.isfile(file):
                logger.debug("Skipping %s, not a binary package", file)
                continue

            package_path = self.extract_single_package(file)
            extracted.append(package_path)

            classes = scanner.find_class_definitions(package_path)
            try:
                scanner.transform_all(classes, self.transformer)
            except (ClassDefinitionMissing, TransformError) as e:
                logger.error("Transforming %s stopped: %s", file, e)
        return extracted

    def extract_single_package(self, file_name: str) -> str:
        """Explode one binary package next to itself; returns the package folder."""
        return archive.extract_single_package(file_name)

    def install_parameters_for(self, package: PackageHandle) -> InstallParameters:
        return self.installer.install_parameters_for(package)

    def _load_package(self) -> PackageHandle:
        return self.loader.load(self._package_name, self._repo_path)

    def install(self, check_version: bool = True) -> bool:
        """Install the selected text-based package.

        Args:
            check_version: Only install classes newer than the installed ones.
                Checked per content class, not for the whole package.
        """
        package = self._load_package()
        logger.info('Installing XML-package "%s" from %s', self._package_name, self._repo_path)
        return self.installer.install(package, check_version)

    def uninstall(self) -> bool:
        """Uninstall the selected text-based package.

        Only classes without instances can be uninstalled; remove their
        objects first.
        """
        package = self._load_package()
        logger.info('Uninstalling XML-package "%s" from %s', self._package_name, self._repo_path)
        return self.installer.uninstall(package)

    def install_binary_package(self, name: str, file: str) -> bool:
        return self.installer.install_binary(name, file)

    def replace_binary_package(self, name: str, file: str, new_package_name: Optional[str] = None) -> bool:
        return self.installer.replace_binary(name, file, new_package_name)

    def remove_binary_package(self, name: str) -> None:
        self.installer.remove_binary(name)

    def change_class_identifier_of_object(self, object_id, class_identifier: str) -> None:
        """Change the content class of an existing object.

        Raises:
            InvalidReference: If the object id or class identifier is wrong.
        """
        reassign.change_class(
            object_id,
            class_identifier,
            self.repository.objects,
            self.repository.classes,
            self.repository.cache,
        )
