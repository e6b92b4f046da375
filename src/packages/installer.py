"""Install, uninstall and replace packages through a repository's package API."""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from errors import ArchiveError
from packages.archive import read_archive_manifest
from packages.models import InstallDefaults, InstallParameters
from repository.base import PackageHandle, PackageRegistry

logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
# name -> [lock, number of holders and waiters]
_name_locks: Dict[str, list] = {}


@contextmanager
def package_lock(name: str) -> Iterator[None]:
    """Serialize operations on one package name within this process.

    The entry for ``name`` is dropped once nobody holds or waits for it.
    """
    with _locks_guard:
        entry = _name_locks.setdefault(name, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _locks_guard:
            entry[1] -= 1
            if not entry[1]:
                del _name_locks[name]


class Installer:
    """Drives a repository's install/uninstall/remove operations.

    Args:
        registry: The repository's package registry.
        user_id: The principal installation runs on behalf of.
        defaults: Configured site-access, node and design maps.
    """

    def __init__(self, registry: PackageRegistry, user_id, defaults: Optional[InstallDefaults] = None):
        self.registry = registry
        self.user_id = user_id
        self.defaults = defaults or InstallDefaults()

    def install_parameters_for(self, package: PackageHandle) -> InstallParameters:
        """Parameters needed for un/installing ``package``."""
        return InstallParameters.build(package, self.user_id, self.defaults)

    def install(self, package: Optional[PackageHandle], check_version: bool = True) -> bool:
        """Install a package.

        With ``check_version`` each content class is only installed when it
        is newer than the installed one.
        """
        if not isinstance(package, PackageHandle):
            logger.error("Unable to install: no valid package given (%r).", package)
            return False

        with package_lock(package.name):
            params = self.install_parameters_for(package)
            package.check_for_installed_version = check_version
            result = bool(package.install(params))

        if result:
            logger.info("Installed package %s", package.name)
        else:
            logger.error("Installing package %s failed", package.name)
        return result

    def uninstall(self, package: Optional[PackageHandle]) -> bool:
        """Uninstall a package.

        Classes that still have content objects cannot be uninstalled; the
        repository reports that as an unsuccessful result.
        """
        if not isinstance(package, PackageHandle):
            logger.error("Unable to uninstall: no valid package given (%r).", package)
            return False

        with package_lock(package.name):
            params = self.install_parameters_for(package)
            package.is_installed = True
            result = bool(package.uninstall(params))

        if result:
            logger.info("Uninstalled package %s", package.name)
        else:
            logger.error("Uninstalling package %s failed", package.name)
        return result

    def _remove(self, name: str) -> bool:
        package = self.registry.fetch(name)
        if package is None:
            return False
        package.purge()
        return True

    def _import_and_install(self, name: str, file: str) -> bool:
        package = self.registry.import_archive(file, name)
        if package is None:
            logger.error("Unable to import binary package %s from %s", name, file)
            return False
        params = self.install_parameters_for(package)
        result = bool(package.install(params))
        if not result:
            logger.error("Installing binary package %s failed", name)
        return result

    def install_binary(self, name: str, file: str) -> bool:
        """Install a binary package file under ``name``, replacing any registration of that name."""
        if not os.path.isfile(file):
            logger.warning("File %s does not exist.", file)
            return False

        logger.info('Install binary package "%s" from file %s', name, file)
        with package_lock(name):
            if self._remove(name):
                logger.info('Removed existing package "%s"', name)
            return self._import_and_install(name, file)

    def replace_binary(self, name: str, file: str, new_name: Optional[str] = None) -> bool:
        """Replace package ``name`` with the binary package ``file``.

        The new archive is validated before anything is removed, so an
        unreadable replacement leaves the old package in place. Between the
        removal and the install the package is registered under neither name.
        """
        logger.info('Replace binary package "%s" with %s', name, file)
        try:
            staged = read_archive_manifest(file)
        except ArchiveError as e:
            logger.error("Not replacing %s: %s", name, e)
            return False
        logger.debug("Replacement archive carries package %s %s", staged.name, staged.version_string)

        target = new_name if new_name is not None else name
        with package_lock(name):
            if not self._remove(name):
                logger.debug("No package %s registered", name)
            if target == name:
                return self._import_and_install(name, file)
        return self.install_binary(target, file)

    def remove_binary(self, name: str) -> None:
        """Remove the registered package ``name``; nothing happens if there is none."""
        logger.info('Remove binary package "%s"', name)
        with package_lock(name):
            if not self._remove(name):
                logger.debug("No package %s registered", name)
