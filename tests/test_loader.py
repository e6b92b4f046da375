"""Tests for loading text-based packages."""

import os
from unittest.mock import MagicMock

import pytest

from errors import LoadError, LoadErrorReason
from packages.loader import PackageLoader
from repository.local import LocalPackage


class TestPackageLoader:
    """Test PackageLoader.load."""

    def test_loads_package_bound_to_repository_path(self, make_package, local_repo):
        """Test the package reads its assets from the given repository path."""
        package_dir = make_package("news", {"article": 1})
        repo_path = os.path.dirname(package_dir)

        package = PackageLoader(local_repo).load("news", repo_path)

        assert isinstance(package, LocalPackage)
        assert package.name == "news"
        assert package.source_dir == os.path.join(os.path.realpath(repo_path), "news")
        assert package.version_string == "1.0-1"

    def test_missing_package_folder(self, tmp_path, local_repo):
        """Test a missing folder fails with PACKAGE_PATH_MISSING."""
        with pytest.raises(LoadError) as excinfo:
            PackageLoader(local_repo).load("missing", str(tmp_path))

        assert excinfo.value.reason is LoadErrorReason.PACKAGE_PATH_MISSING

    def test_missing_manifest(self, tmp_path, local_repo):
        """Test a folder without package.xml fails with MANIFEST_MISSING."""
        (tmp_path / "news").mkdir()

        with pytest.raises(LoadError) as excinfo:
            PackageLoader(local_repo).load("news", str(tmp_path))

        assert excinfo.value.reason is LoadErrorReason.MANIFEST_MISSING

    def test_empty_manifest(self, tmp_path, local_repo):
        """Test an empty package.xml fails with MANIFEST_UNPARSEABLE."""
        (tmp_path / "news").mkdir()
        (tmp_path / "news" / "package.xml").write_text("", encoding="utf-8")

        with pytest.raises(LoadError) as excinfo:
            PackageLoader(local_repo).load("news", str(tmp_path))

        assert excinfo.value.reason is LoadErrorReason.MANIFEST_UNPARSEABLE

    def test_manifest_without_parameters(self, tmp_path, local_repo):
        """Test a manifest naming no package fails with NO_PARAMETERS."""
        (tmp_path / "news").mkdir()
        (tmp_path / "news" / "package.xml").write_text("<package/>", encoding="utf-8")

        with pytest.raises(LoadError) as excinfo:
            PackageLoader(local_repo).load("news", str(tmp_path))

        assert excinfo.value.reason is LoadErrorReason.NO_PARAMETERS

    def test_removes_existing_registration_first(self, make_package):
        """Test a registered package of the same name is removed before loading."""
        package_dir = make_package("news")
        existing = MagicMock()
        registry = MagicMock()
        registry.fetch.return_value = existing

        PackageLoader(registry).load("news", os.path.dirname(package_dir))

        registry.fetch.assert_called_once_with("news")
        existing.remove.assert_called_once_with()
        registry.create_package.assert_called_once()

    def test_no_existing_registration(self, make_package):
        """Test nothing is removed when no package is registered."""
        package_dir = make_package("news")
        registry = MagicMock()
        registry.fetch.return_value = None

        PackageLoader(registry).load("news", os.path.dirname(package_dir))

        registry.create_package.assert_called_once()
        repo_path, params = registry.create_package.call_args[0]
        assert repo_path == os.path.realpath(os.path.dirname(package_dir))
        assert params.name == "news"
