"""Filesystem-backed content repository.

Package registrations, content classes and content objects are kept in a
YAML state file under the repository root; imported binary packages are
exploded into ``<root>/packages/<name>``. Every operation reads the state,
applies its change and writes it back atomically.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants
from errors import ArchiveError, InvalidReference
from packages.archive import extract_archive, read_archive_manifest
from packages.manifest import parse_class_definition, parse_package_manifest_file, parse_parameters
from packages.models import ContentClassRef, InstallParameters, PackageParameters
from repository.base import (
    CacheManager,
    ContentClassStore,
    ContentObjectHandle,
    ContentObjectStore,
    PackageHandle,
    PackageRegistry,
    Repository,
)

logger = logging.getLogger(__name__)


def _empty_state() -> Dict[str, Any]:
    return {"packages": {}, "classes": {}, "objects": {}, "cache": {"invalidated": []}}


class LocalPackage(PackageHandle):
    """A package whose assets live in ``source_dir``."""

    def __init__(self, repo: "LocalRepository", parameters: PackageParameters, source_dir: str):
        super().__init__(parameters.name)
        self.repo = repo
        self.parameters = parameters
        self.source_dir = source_dir

    @property
    def version_string(self) -> Optional[str]:
        return self.parameters.version_string

    def default_language_map(self) -> Dict[str, str]:
        return self.parameters.default_language_map()

    def _class_definitions(self, uninstall: bool = False):
        definitions = []
        for item in self.parameters.class_items(uninstall=uninstall):
            path = os.path.join(self.source_dir, item.relative_path())
            if not os.path.isfile(path):
                logger.error("Package %s: class-definition %s not found", self.name, path)
                return None
            try:
                definitions.append(parse_class_definition(path))
            except ValueError as e:
                logger.error("Package %s: %s", self.name, e)
                return None
        return definitions

    def install(self, params: InstallParameters) -> bool:
        definitions = self._class_definitions()
        if definitions is None:
            return False

        state = self.repo.load_state()
        installed: List[str] = []
        for definition in definitions:
            existing = state["classes"].get(definition.identifier)
            if (
                self.check_for_installed_version
                and existing is not None
                and int(existing.get("modified", 0)) >= definition.modified
            ):
                logger.info(
                    "Class %s is not newer than the installed one, skipping",
                    definition.identifier,
                )
                installed.append(definition.identifier)
                continue

            class_id = existing["id"] if existing is not None else self.repo.next_class_id(state)
            state["classes"][definition.identifier] = {
                "id": class_id,
                "name": definition.name,
                "remote_id": definition.remote_id,
                "created": definition.created,
                "modified": definition.modified,
                "package": self.name,
            }
            logger.info("%s class %s", "Replaced" if existing else "Created", definition.identifier)
            installed.append(definition.identifier)

        state["packages"][self.name] = {
            "version": self.version_string,
            "source": self.source_dir,
            "installed": True,
            "classes": installed,
            "installed_by": params.user_id,
            "language_map": params.language_map,
        }
        self.repo.save_state(state)
        self.is_installed = True
        return True

    def uninstall(self, params: InstallParameters) -> bool:
        if not self.is_installed:
            logger.error("Package %s is not installed", self.name)
            return False

        definitions = self._class_definitions(uninstall=True)
        if definitions is None:
            return False

        state = self.repo.load_state()
        for definition in definitions:
            existing = state["classes"].get(definition.identifier)
            if existing is None:
                continue
            instances = [o for o in state["objects"].values() if o.get("class_id") == existing["id"]]
            if instances:
                logger.error(
                    "Class %s still has %d object(s); remove them before uninstalling",
                    definition.identifier,
                    len(instances),
                )
                return False

        for definition in definitions:
            if state["classes"].pop(definition.identifier, None) is not None:
                logger.info("Removed class %s", definition.identifier)
        state["packages"].pop(self.name, None)
        self.repo.save_state(state)
        self.is_installed = False
        return True

    def remove(self) -> None:
        self.repo.unregister(self.name)

    def purge(self) -> None:
        self.repo.unregister(self.name, purge=True)


class LocalContentObject(ContentObjectHandle):
    """A content object stored in the local state file."""

    def __init__(self, repo: "LocalRepository", object_id: int, name: str, class_id: int):
        super().__init__(object_id, name, class_id)
        self.repo = repo

    def store(self) -> None:
        state = self.repo.load_state()
        state["objects"][self.id] = {"id": self.id, "name": self.name, "class_id": self.class_id}
        self.repo.save_state(state)


class LocalRepository(PackageRegistry, ContentObjectStore, ContentClassStore, CacheManager):
    """A content repository kept in a directory.

    Args:
        root: Directory holding the state file and imported packages.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self.state_file = os.path.join(self.root, Constants.LOCAL_STATE_FILE)
        self.packages_dir = os.path.join(self.root, Constants.LOCAL_PACKAGES_DIR)

    def as_repository(self) -> Repository:
        return Repository(packages=self, objects=self, classes=self, cache=self)

    # ---------- state ----------

    def load_state(self) -> Dict[str, Any]:
        state = _empty_state()
        if not os.path.isfile(self.state_file):
            return state
        with open(self.state_file, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Repository state {self.state_file} is not a mapping")
        for key, value in data.items():
            if isinstance(value, dict) and isinstance(state.get(key), dict):
                state[key].update(value)
            else:
                state[key] = value
        return state

    def save_state(self, state: Dict[str, Any]) -> None:
        os.makedirs(self.root, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".state-", suffix=".yml", dir=self.root)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump(state, fh, default_flow_style=False, sort_keys=True)
            os.replace(tmp, self.state_file)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    @staticmethod
    def next_class_id(state: Dict[str, Any]) -> int:
        ids = [int(c["id"]) for c in state["classes"].values()]
        return max(ids, default=0) + 1

    # ---------- packages ----------

    def _package_from_record(self, name: str, record: Dict[str, Any]) -> LocalPackage:
        source = record.get("source") or os.path.join(self.packages_dir, name)
        parameters = None
        manifest = os.path.join(source, Constants.MANIFEST_FILE)
        if os.path.isfile(manifest):
            dom = parse_package_manifest_file(manifest)
            parameters = parse_parameters(dom) if dom is not None else None
        if parameters is None:
            parameters = PackageParameters(name=name)
        parameters.name = name
        package = LocalPackage(self, parameters, source)
        package.is_installed = bool(record.get("installed"))
        return package

    def fetch(self, name: str) -> Optional[PackageHandle]:
        record = self.load_state()["packages"].get(name)
        if record is None:
            return None
        return self._package_from_record(name, record)

    def unregister(self, name: str, purge: bool = False) -> None:
        """Drop the registration of ``name``.

        The folder an imported archive was exploded into is only deleted with
        ``purge``; a text-based package may be loaded straight from it.
        """
        state = self.load_state()
        if state["packages"].pop(name, None) is not None:
            self.save_state(state)
            logger.debug("Unregistered package %s", name)
        stored = os.path.join(self.packages_dir, name)
        if purge and os.path.isdir(stored):
            shutil.rmtree(stored)

    def import_archive(self, path: str, name: str) -> Optional[PackageHandle]:
        try:
            parameters = read_archive_manifest(path)
            destination = os.path.join(self.packages_dir, name)
            if os.path.isdir(destination):
                shutil.rmtree(destination)
            extract_archive(path, destination)
        except ArchiveError as e:
            logger.error("Importing %s failed: %s", path, e)
            return None

        parameters.name = name
        state = self.load_state()
        state["packages"][name] = {
            "version": parameters.version_string,
            "source": destination,
            "installed": False,
            "classes": [],
        }
        self.save_state(state)
        return LocalPackage(self, parameters, destination)

    def create_package(self, repository_path: str, parameters: PackageParameters) -> PackageHandle:
        return LocalPackage(self, parameters, os.path.join(repository_path, parameters.name))

    # ---------- content ----------

    def fetch_object(self, object_id: Any) -> Optional[ContentObjectHandle]:
        try:
            key = int(object_id)
        except (TypeError, ValueError):
            return None
        record = self.load_state()["objects"].get(key)
        if record is None:
            return None
        return LocalContentObject(self, key, record.get("name", ""), record.get("class_id"))

    def create_object(self, name: str, class_identifier: str) -> LocalContentObject:
        """Seed a content object of the given class.

        Content objects are normally created by the content editors of the
        repository; this populates a local repository for imports and tests.

        Raises:
            InvalidReference: If the class does not exist.
        """
        class_ref = self.fetch_class_by_identifier(class_identifier)
        if class_ref is None:
            raise InvalidReference(None, class_identifier)
        state = self.load_state()
        object_id = max((int(k) for k in state["objects"]), default=0) + 1
        obj = LocalContentObject(self, object_id, name, class_ref.id)
        obj.store()
        return obj

    def fetch_class_by_identifier(self, identifier: str) -> Optional[ContentClassRef]:
        record = self.load_state()["classes"].get(identifier)
        if record is None:
            return None
        return ContentClassRef(
            id=int(record["id"]),
            identifier=identifier,
            name=record.get("name"),
            modified=int(record.get("modified", 0)),
        )

    def invalidate(self, object_id: Any) -> None:
        state = self.load_state()
        invalidated = state["cache"].setdefault("invalidated", [])
        if object_id not in invalidated:
            invalidated.append(object_id)
        self.save_state(state)
        logger.debug("Invalidated cache for object %s", object_id)
