"""Tests for the HTTP repository adapter (session mocked, no network)."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from errors import RepositoryError
from packages.manifest import parse_package_manifest_file, parse_parameters
from packages.models import InstallParameters, PackageParameters
from repository.remote import RemoteRepository


def _response(status=200, payload=None):
    res = MagicMock()
    res.status_code = status
    res.content = json.dumps(payload).encode() if payload is not None else b""
    res.text = res.content.decode()
    res.json.return_value = payload
    return res


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def repo(session):
    return RemoteRepository("https://cms.example.org/api/", token="secret", session=session)


def _params():
    return InstallParameters.build(PackageParameters(name="news"), 14)


class TestRemoteRepository:
    """Test RemoteRepository requests and response handling."""

    def test_requires_url(self):
        """Test a missing base URL is rejected."""
        with pytest.raises(ValueError):
            RemoteRepository("")

    def test_auth_header(self, repo, session):
        """Test the bearer token is sent with every request."""
        assert session.headers["Authorization"] == "Bearer secret"
        assert session.headers["Accept"] == "application/json"

    def test_url_quotes_segments(self, repo):
        """Test path segments are escaped."""
        assert repo.url("packages", "a b/c") == "https://cms.example.org/api/packages/a%20b%2Fc"

    def test_fetch_package(self, repo, session):
        """Test a registered package is returned with its state."""
        session.request.return_value = _response(
            payload={"name": "news", "version": "1.0-1", "installed": True, "languages": ["eng-GB"]}
        )

        package = repo.fetch("news")

        session.request.assert_called_once()
        method, url = session.request.call_args[0]
        assert (method, url) == ("GET", "https://cms.example.org/api/packages/news")
        assert package.version_string == "1.0-1"
        assert package.is_installed is True
        assert package.default_language_map() == {"eng-GB": "eng-GB"}

    def test_fetch_missing_package(self, repo, session):
        """Test a 404 means not registered."""
        session.request.return_value = _response(404)

        assert repo.fetch("news") is None

    def test_server_error_raises(self, repo, session):
        """Test other error statuses raise RepositoryError."""
        session.request.return_value = _response(500, {"error": "boom"})

        with pytest.raises(RepositoryError) as excinfo:
            repo.fetch_class_by_identifier("article")

        assert excinfo.value.status_code == 500

    def test_connection_error_is_retried_then_raised(self, repo, session):
        """Test idempotent requests are retried before giving up."""
        session.request.side_effect = requests.ConnectionError("refused")

        with patch("common.http_client.time.sleep"):
            with pytest.raises(RepositoryError):
                repo.fetch("news")

        assert session.request.call_count == 3

    def test_post_is_not_retried(self, repo, session):
        """Test non-idempotent requests are attempted once."""
        session.request.side_effect = requests.Timeout()
        package = repo.create_package("/nowhere", PackageParameters(name="news"))
        package.source_dir = None

        with pytest.raises(RepositoryError):
            package.install(_params())

        assert session.request.call_count == 1

    def test_install_uploads_documents(self, repo, session, make_package):
        """Test installing a folder package sends its manifest and class files."""
        package_dir = make_package("news", {"article": 1})
        parameters = parse_parameters(parse_package_manifest_file(os.path.join(package_dir, "package.xml")))
        package = repo.create_package(os.path.dirname(package_dir), parameters)
        package.check_for_installed_version = False
        session.request.return_value = _response(payload={"success": True})

        assert package.install(_params()) is True

        method, url = session.request.call_args[0]
        body = session.request.call_args[1]["json"]
        assert (method, url) == ("POST", "https://cms.example.org/api/packages/news/install")
        assert body["check_for_installed_version"] is False
        assert body["parameters"]["user_id"] == 14
        assert set(body["documents"]) == {"package.xml", "ezcontentclass/class-article.xml"}

    def test_install_reports_failure(self, repo, session, caplog):
        """Test an unsuccessful install returns False and logs the messages."""
        session.request.return_value = _response(payload={"success": False, "messages": ["class in use"]})
        package = repo.create_package("/nowhere", PackageParameters(name="news"))
        package.source_dir = None

        assert package.uninstall(_params()) is False
        assert "class in use" in caplog.text

    def test_import_archive(self, repo, session, make_archive):
        """Test archives are uploaded as multipart form data."""
        archive = make_archive("news")
        session.request.return_value = _response(201, {"name": "news", "installed": False})

        package = repo.import_archive(archive, "news")

        assert package.name == "news"
        kwargs = session.request.call_args[1]
        assert kwargs["data"] == {"name": "news"}
        assert "archive" in kwargs["files"]

    def test_import_rejected(self, repo, session, make_archive):
        """Test a rejected archive yields None."""
        session.request.return_value = _response(422, {"error": "invalid"})

        assert repo.import_archive(make_archive("news"), "news") is None

    def test_object_store_and_invalidate(self, repo, session):
        """Test content objects are patched and caches deleted by id."""
        session.request.side_effect = [
            _response(payload={"id": 7, "name": "Hello", "class_id": 1}),
            _response(payload={"id": 2, "identifier": "folder", "modified": 9}),
            _response(payload={"id": 7, "class_id": 2}),
            _response(204),
        ]

        obj = repo.fetch_object(7)
        ref = repo.fetch_class_by_identifier("folder")
        obj.set_class(ref)
        obj.store()
        repo.invalidate(7)

        calls = [c[0] for c in session.request.call_args_list]
        assert calls[2] == ("PATCH", "https://cms.example.org/api/content/objects/7")
        assert session.request.call_args_list[2][1]["json"] == {"class_id": 2}
        assert calls[3] == ("DELETE", "https://cms.example.org/api/content/cache/7")
