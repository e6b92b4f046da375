"""Content repository reached over a JSON HTTP API.

Endpoints (relative to the configured base URL):

- ``GET/DELETE /packages/{name}``: package registration
- ``POST /packages``: upload a binary package (multipart ``archive``, ``name``)
- ``POST /packages/{name}/install`` and ``/uninstall``: run the package handlers
- ``GET/PATCH /content/objects/{id}``: content objects
- ``GET /content/classes/{identifier}``: content classes
- ``DELETE /content/cache/{id}``: cache invalidation

404 means "not found"; any other status >= 400 raises RepositoryError.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from common.http_client import safe_delete, safe_get, safe_patch, safe_post
from constants import Constants
from errors import RepositoryError
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


def _check(res: requests.Response, context: str, allow_missing: bool = True) -> Optional[Any]:
    """Decode a JSON response; None for 404 (when allowed) or an empty body."""
    if res.status_code == 404 and allow_missing:
        return None
    if res.status_code >= 400:
        raise RepositoryError(
            f"{context} failed with HTTP {res.status_code}: {res.text[:200]}",
            status_code=res.status_code,
        )
    if not res.content:
        return None
    try:
        return res.json()
    except ValueError as e:
        raise RepositoryError(f"{context} returned invalid JSON: {e}", status_code=res.status_code) from e


class RemotePackage(PackageHandle):
    """A package installed through the remote API.

    Packages created from a local folder upload their manifest and class
    definitions with the install request.
    """

    def __init__(
        self,
        repo: "RemoteRepository",
        name: str,
        version: Optional[str] = None,
        languages: Optional[list] = None,
        source_dir: Optional[str] = None,
        parameters: Optional[PackageParameters] = None,
    ):
        super().__init__(name)
        self.repo = repo
        self._version = version
        self._languages = list(languages or [])
        self.source_dir = source_dir
        self.parameters = parameters

    @property
    def version_string(self) -> Optional[str]:
        return self._version

    def default_language_map(self) -> Dict[str, str]:
        return {lang: lang for lang in self._languages}

    def _documents(self) -> Dict[str, str]:
        if not self.source_dir or self.parameters is None:
            return {}
        documents = {}
        manifest = os.path.join(self.source_dir, Constants.MANIFEST_FILE)
        with open(manifest, "r", encoding="utf-8") as fh:
            documents[Constants.MANIFEST_FILE] = fh.read()
        for item in self.parameters.class_items() + self.parameters.class_items(uninstall=True):
            rel = item.relative_path()
            if rel in documents:
                continue
            with open(os.path.join(self.source_dir, rel), "r", encoding="utf-8") as fh:
                documents[rel] = fh.read()
        return documents

    def _run(self, action: str, params: InstallParameters) -> bool:
        body: Dict[str, Any] = {
            "parameters": params.to_dict(),
            "check_for_installed_version": self.check_for_installed_version,
            "is_installed": self.is_installed,
        }
        try:
            documents = self._documents()
        except OSError as e:
            logger.error("Package %s: unable to read package documents: %s", self.name, e)
            return False
        if documents:
            body["documents"] = documents
        res = safe_post(
            self.repo.url("packages", self.name, action),
            context="packages",
            session=self.repo.session,
            json=body,
        )
        data = _check(res, f"{action} {self.name}", allow_missing=False) or {}
        if not data.get("success", False):
            for message in data.get("messages", []):
                logger.error("%s: %s", self.name, message)
            return False
        return True

    def install(self, params: InstallParameters) -> bool:
        return self._run("install", params)

    def uninstall(self, params: InstallParameters) -> bool:
        return self._run("uninstall", params)

    def remove(self) -> None:
        res = safe_delete(self.repo.url("packages", self.name), context="packages", session=self.repo.session)
        _check(res, f"remove {self.name}")


class RemoteContentObject(ContentObjectHandle):
    def __init__(self, repo: "RemoteRepository", object_id: Any, name: str, class_id: Any):
        super().__init__(object_id, name, class_id)
        self.repo = repo

    def store(self) -> None:
        res = safe_patch(
            self.repo.url("content", "objects", self.id),
            context="objects",
            session=self.repo.session,
            json={"class_id": self.class_id},
        )
        _check(res, f"store object {self.id}", allow_missing=False)


class RemoteRepository(PackageRegistry, ContentObjectStore, ContentClassStore, CacheManager):
    """Repository adapter over the HTTP API at ``base_url``.

    Args:
        base_url: API root, e.g. https://cms.example.org/api.
        token: Optional bearer token.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, session: Optional[requests.Session] = None):
        if not base_url:
            raise ValueError("A repository URL is required for the remote repository")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def as_repository(self) -> Repository:
        return Repository(packages=self, objects=self, classes=self, cache=self)

    def url(self, *segments: Any) -> str:
        return "/".join([self.base_url] + [quote(str(s), safe="") for s in segments])

    def _package(self, data: Dict[str, Any], fallback_name: str) -> RemotePackage:
        package = RemotePackage(
            self,
            data.get("name") or fallback_name,
            version=data.get("version"),
            languages=data.get("languages"),
        )
        package.is_installed = bool(data.get("installed", False))
        return package

    def fetch(self, name: str) -> Optional[PackageHandle]:
        res = safe_get(self.url("packages", name), context="packages", session=self.session)
        data = _check(res, f"fetch package {name}")
        if data is None:
            return None
        return self._package(data, name)

    def import_archive(self, path: str, name: str) -> Optional[PackageHandle]:
        try:
            with open(path, "rb") as fh:
                res = safe_post(
                    self.url("packages"),
                    context="packages",
                    session=self.session,
                    files={"archive": (os.path.basename(path), fh, "application/octet-stream")},
                    data={"name": name},
                )
        except OSError as e:
            logger.error("Unable to read %s: %s", path, e)
            return None
        if res.status_code in (400, 422):
            logger.error("Repository rejected %s: %s", path, res.text[:200])
            return None
        data = _check(res, f"import {path}", allow_missing=False) or {}
        return self._package(data, name)

    def create_package(self, repository_path: str, parameters: PackageParameters) -> PackageHandle:
        return RemotePackage(
            self,
            parameters.name,
            version=parameters.version_string,
            languages=parameters.languages,
            source_dir=os.path.join(repository_path, parameters.name),
            parameters=parameters,
        )

    def fetch_object(self, object_id: Any) -> Optional[ContentObjectHandle]:
        res = safe_get(self.url("content", "objects", object_id), context="objects", session=self.session)
        data = _check(res, f"fetch object {object_id}")
        if data is None:
            return None
        return RemoteContentObject(self, data.get("id", object_id), data.get("name", ""), data.get("class_id"))

    def fetch_class_by_identifier(self, identifier: str) -> Optional[ContentClassRef]:
        res = safe_get(self.url("content", "classes", identifier), context="classes", session=self.session)
        data = _check(res, f"fetch class {identifier}")
        if data is None:
            return None
        return ContentClassRef(
            id=data["id"],
            identifier=data.get("identifier", identifier),
            name=data.get("name"),
            modified=int(data.get("modified") or 0),
        )

    def invalidate(self, object_id: Any) -> None:
        res = safe_delete(self.url("content", "cache", object_id), context="cache", session=self.session)
        _check(res, f"invalidate cache {object_id}")
