"""Shared fixtures: on-disk text packages, binary packages and a local repository."""

import os
import tarfile

import pytest

from repository.local import LocalRepository


def class_xml(identifier, modified=1000, name=None):
    """A minimal class-definition document."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<content-class>
    <name>{name or identifier.title()}</name>
    <identifier>{identifier}</identifier>
    <remote-id>rid-{identifier}</remote-id>
    <created>100</created>
    <modified>{modified}</modified>
    <attributes/>
</content-class>
"""


def manifest_xml(name, identifiers, version="1.0", release="1", languages=("eng-GB",)):
    """A package.xml listing the given classes in its install and uninstall sections."""
    items = "\n".join(
        f'    <item type="ezcontentclass" filename="class-{ident}" sub-directory="ezcontentclass" />'
        for ident in identifiers
    )
    langs = "\n".join(f"    <language>{lang}</language>" for lang in languages)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package version="3.5.2" development="false">
  <name>{name}</name>
  <summary>Test package {name}</summary>
  <type value="contentclass" />
  <version>
    <number>{version}</number>
    <release>{release}</release>
  </version>
  <install>
{items}
  </install>
  <uninstall>
{items}
  </uninstall>
  <languages>
{langs}
  </languages>
</package>
"""


def write_package(repo_dir, name, classes, version="1.0", release="1", languages=("eng-GB",)):
    """Create ``repo_dir/name`` as a text-based package.

    Args:
        classes: mapping of class identifier to modified timestamp.

    Returns:
        str: The package folder.
    """
    package_dir = os.path.join(str(repo_dir), name)
    class_dir = os.path.join(package_dir, "ezcontentclass")
    os.makedirs(class_dir, exist_ok=True)
    with open(os.path.join(package_dir, "package.xml"), "w", encoding="utf-8") as fh:
        fh.write(manifest_xml(name, list(classes), version, release, languages))
    for ident, modified in classes.items():
        with open(os.path.join(class_dir, f"class-{ident}.xml"), "w", encoding="utf-8") as fh:
            fh.write(class_xml(ident, modified))
    return package_dir


def build_archive(archive_path, package_dir):
    """Pack a package folder into a gzip tar, members relative to the folder."""
    with tarfile.open(str(archive_path), "w:gz") as tar:
        for root, _, files in os.walk(package_dir):
            for file in sorted(files):
                full = os.path.join(root, file)
                tar.add(full, arcname=os.path.relpath(full, package_dir))
    return str(archive_path)


@pytest.fixture
def make_package(tmp_path):
    """Factory writing text-based packages below tmp_path/repo."""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir(exist_ok=True)

    def _make(name="mypackage", classes=None, **kwargs):
        return write_package(repo_dir, name, classes or {"article": 1000}, **kwargs)

    return _make


@pytest.fixture
def make_archive(tmp_path):
    """Factory producing <name>-<version>-<release>.ezpkg files in tmp_path/dist."""
    src_dir = tmp_path / "archive-src"
    dist_dir = tmp_path / "dist"
    src_dir.mkdir(exist_ok=True)
    dist_dir.mkdir(exist_ok=True)

    def _make(name="mypackage", classes=None, file_name=None, version="1.0", release="1"):
        package_dir = write_package(src_dir, name, classes or {"article": 1000}, version, release)
        file_name = file_name or f"{name}-{version}-{release}.ezpkg"
        return build_archive(dist_dir / file_name, package_dir)

    return _make


@pytest.fixture
def local_repo(tmp_path):
    return LocalRepository(str(tmp_path / "state"))
