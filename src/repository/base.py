"""Capability interfaces a content repository adapter must provide.

The package pipeline only talks to these; concrete adapters live in
repository.local and repository.remote.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from packages.models import ContentClassRef, InstallParameters, PackageParameters


class PackageHandle(ABC):
    """An installable package known to (or about to be handed to) a repository."""

    def __init__(self, name: str):
        self.name = name
        self.check_for_installed_version = False
        self.is_installed = False

    @property
    @abstractmethod
    def version_string(self) -> Optional[str]:
        """Return the package version as "<number>-<release>", if known."""

    @abstractmethod
    def default_language_map(self) -> Dict[str, str]:
        """Return the package's declared language map."""

    @abstractmethod
    def install(self, params: InstallParameters) -> bool:
        """Install the package's items. Returns overall success."""

    @abstractmethod
    def uninstall(self, params: InstallParameters) -> bool:
        """Uninstall the package's items. Returns overall success."""

    @abstractmethod
    def remove(self) -> None:
        """Drop the package's registration from the repository."""

    def purge(self) -> None:
        """Drop the registration together with any files the repository stored for it."""
        self.remove()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class PackageRegistry(ABC):
    """The repository's package registration API."""

    @abstractmethod
    def fetch(self, name: str) -> Optional[PackageHandle]:
        """Return the registered package called ``name``, or None."""

    @abstractmethod
    def import_archive(self, path: str, name: str) -> Optional[PackageHandle]:
        """Register a binary package file under ``name``; None if unreadable."""

    @abstractmethod
    def create_package(self, repository_path: str, parameters: PackageParameters) -> PackageHandle:
        """Build an installable package that reads its assets from ``repository_path``."""


class ContentObjectHandle(ABC):
    """A live content object whose class can be changed."""

    def __init__(self, object_id: Any, name: str, class_id: Any):
        self.id = object_id
        self.name = name
        self.class_id = class_id

    def set_class(self, class_ref: ContentClassRef) -> None:
        self.class_id = class_ref.id

    @abstractmethod
    def store(self) -> None:
        """Persist the object."""


class ContentObjectStore(ABC):
    @abstractmethod
    def fetch_object(self, object_id: Any) -> Optional[ContentObjectHandle]:
        """Return the object with ``object_id``, or None."""


class ContentClassStore(ABC):
    @abstractmethod
    def fetch_class_by_identifier(self, identifier: str) -> Optional[ContentClassRef]:
        """Return the class with ``identifier``, or None."""


class CacheManager(ABC):
    @abstractmethod
    def invalidate(self, object_id: Any) -> None:
        """Drop cached renderings of the object."""


class ClassDefinitionTransformer(ABC):
    @abstractmethod
    def transform(self, path: str) -> None:
        """Rewrite a single class-definition document in place."""


@dataclass
class Repository:
    """Bundle of the stores a repository adapter exposes."""
    packages: PackageRegistry
    objects: ContentObjectStore
    classes: ContentClassStore
    cache: CacheManager
