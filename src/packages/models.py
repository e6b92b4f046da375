"""Data models for content-class packages and their installation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from constants import Constants


class ArchiveNameKind(Enum):
    """Outcome of the name-from-filename heuristic."""
    NAME = "name"
    UNPARSEABLE = "unparseable"


@dataclass(frozen=True)
class ArchiveName:
    """Package name derived from a binary package filename.

    ``ambiguous`` is set when a hyphenated filename is not exactly
    ``<name>-<version>-<revision>`` with a numeric version, so a hyphenated
    package name cannot be told apart from its version segments. Version and
    release are left empty in that case.
    """
    kind: ArchiveNameKind
    name: str = ""
    version: Optional[str] = None
    release: Optional[str] = None
    ambiguous: bool = False

    @property
    def is_name(self) -> bool:
        return self.kind is ArchiveNameKind.NAME


@dataclass(frozen=True)
class InstallItem:
    """One <item> of a manifest's install or uninstall section."""
    type: str
    filename: str
    sub_directory: str = ""

    def relative_path(self) -> str:
        """Path of the item's document relative to the package directory."""
        name = self.filename if self.filename.endswith(".xml") else f"{self.filename}.xml"
        if self.sub_directory:
            return f"{self.sub_directory}/{name}"
        return name


@dataclass
class PackageParameters:
    """Parameters extracted from a package.xml manifest."""
    name: str
    summary: Optional[str] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    type: Optional[str] = None
    version_number: Optional[str] = None
    release_number: Optional[str] = None
    languages: List[str] = field(default_factory=list)
    install_items: List[InstallItem] = field(default_factory=list)
    uninstall_items: List[InstallItem] = field(default_factory=list)

    @property
    def version_string(self) -> Optional[str]:
        if not self.version_number:
            return None
        if self.release_number:
            return f"{self.version_number}-{self.release_number}"
        return self.version_number

    def class_items(self, uninstall: bool = False) -> List[InstallItem]:
        """Content-class items; uninstall falls back to the install list."""
        items = self.uninstall_items if uninstall and self.uninstall_items else self.install_items
        return [item for item in items if item.type == Constants.CLASS_DIR]

    def default_language_map(self) -> Dict[str, str]:
        """Map every declared language onto itself."""
        return {lang: lang for lang in self.languages}


@dataclass(frozen=True)
class InstallDefaults:
    """Configurable parts of the installation parameters."""
    site_access_map: Dict[str, Any] = field(
        default_factory=lambda: dict(Constants.DEFAULT_SITE_ACCESS_MAP)
    )
    top_nodes_map: Dict[str, Any] = field(
        default_factory=lambda: dict(Constants.DEFAULT_TOP_NODES_MAP)
    )
    design_map: Dict[str, Any] = field(default_factory=lambda: dict(Constants.DEFAULT_DESIGN_MAP))
    restore_dates: bool = Constants.DEFAULT_RESTORE_DATES
    non_interactive: bool = Constants.DEFAULT_NON_INTERACTIVE


@dataclass(frozen=True)
class InstallParameters:
    """Parameters handed to a package's install/uninstall operation.

    Built fresh for every call and never persisted.
    """
    site_access_map: Dict[str, Any]
    top_nodes_map: Dict[str, Any]
    design_map: Dict[str, Any]
    restore_dates: bool
    user_id: Any
    non_interactive: bool
    language_map: Dict[str, str]

    @classmethod
    def build(cls, package, user_id, defaults: Optional[InstallDefaults] = None) -> "InstallParameters":
        """Build parameters for ``package`` on behalf of ``user_id``."""
        defaults = defaults or InstallDefaults()
        return cls(
            site_access_map=dict(defaults.site_access_map),
            top_nodes_map=dict(defaults.top_nodes_map),
            design_map=dict(defaults.design_map),
            restore_dates=defaults.restore_dates,
            user_id=user_id,
            non_interactive=defaults.non_interactive,
            language_map=dict(package.default_language_map()),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the repository's parameter names."""
        return {
            "site_access_map": self.site_access_map,
            "top_nodes_map": self.top_nodes_map,
            "design_map": self.design_map,
            "restore_dates": self.restore_dates,
            "user_id": self.user_id,
            "non-interactive": self.non_interactive,
            "language_map": self.language_map,
        }


@dataclass(frozen=True)
class ContentClassRef:
    """Reference to a content class stored in a repository."""
    id: int
    identifier: str
    name: Optional[str] = None
    modified: int = 0


@dataclass(frozen=True)
class ClassDefinition:
    """The parts of a class-*.xml document the repositories care about."""
    identifier: str
    name: Optional[str] = None
    remote_id: Optional[str] = None
    created: int = 0
    modified: int = 0
