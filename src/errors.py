"""Exception hierarchy for package resolution, extraction and installation."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ClassPkgError(Exception):
    """Base class for all errors raised by classpkg."""


class NotAPackage(ClassPkgError):
    """A path does not denote a text-based package."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"The provided path {path} {reason}")
        self.path = path
        self.reason = reason


class ArchiveError(ClassPkgError):
    """A binary package could not be extracted."""

    def __init__(self, archive: str, message: str):
        super().__init__(f"{message}: {archive}")
        self.archive = archive


class LoadErrorReason(Enum):
    """Why a text-based package failed to load."""

    PACKAGE_PATH_MISSING = "package_path_missing"
    MANIFEST_MISSING = "manifest_missing"
    MANIFEST_UNPARSEABLE = "manifest_unparseable"
    NO_PARAMETERS = "no_parameters"


_LOAD_MESSAGES = {
    LoadErrorReason.PACKAGE_PATH_MISSING: "Package-Path {path} does not exist.",
    LoadErrorReason.MANIFEST_MISSING: "Package-File {path} does not exist.",
    LoadErrorReason.MANIFEST_UNPARSEABLE: "Package-File {path} is empty or not XML.",
    LoadErrorReason.NO_PARAMETERS: "Package-File {path} does not contain parameters.",
}


class LoadError(ClassPkgError):
    """A text-based package could not be turned into an installable package."""

    def __init__(self, reason: LoadErrorReason, path: str):
        super().__init__(_LOAD_MESSAGES[reason].format(path=path))
        self.reason = reason
        self.path = path


class InvalidReference(ClassPkgError):
    """An object id or class identifier does not resolve."""

    def __init__(self, object_id, class_identifier: str):
        super().__init__(
            f"Invalid Object-ID ({object_id}) or Class-Identifier ({class_identifier})!"
        )
        self.object_id = object_id
        self.class_identifier = class_identifier


class PatternError(ClassPkgError):
    """A file pattern matched nothing."""

    def __init__(self, pattern: str):
        super().__init__(f'Pattern "{pattern}" does not match any files.')
        self.pattern = pattern


class ClassDefinitionMissing(ClassPkgError):
    """A scanned class-definition file disappeared before it was transformed."""

    def __init__(self, path: str):
        super().__init__(f"Class-definition not found: {path}")
        self.path = path


class TransformError(ClassPkgError):
    """A class-definition document could not be transformed."""

    def __init__(self, path: str, detail: str):
        super().__init__(f"Unable to transform class-definition {path}: {detail}")
        self.path = path


class RepositoryError(ClassPkgError):
    """Transport-level failure while talking to a content repository."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
