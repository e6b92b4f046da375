"""Tests for argument parsing and the classpkg entry point."""

import logging

import pytest

from args import parse_args
from classpkg import main
from constants import ExitCodes
from repository.local import LocalRepository


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() installs handlers on the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _run(*argv):
    with pytest.raises(SystemExit) as excinfo:
        main(list(argv))
    return excinfo.value.code


class TestParseArgs:
    """Test the argument parser."""

    def test_install_defaults(self):
        """Test install checks versions unless told otherwise."""
        args = parse_args(["install", "pkg/news"])

        assert args.ACTION == "install"
        assert args.PATH == "pkg/news"
        assert args.NO_VERSION_CHECK is False
        assert args.VERBOSE is False

    def test_global_options(self):
        """Test repository and logging options are parsed."""
        args = parse_args(
            ["--repository", "REMOTE", "--repository-url", "http://cms", "--user-id", "7",
             "--loglevel", "debug", "-v", "install", "--no-version-check", "news"]
        )

        assert args.REPOSITORY == "remote"
        assert args.REPOSITORY_URL == "http://cms"
        assert args.USER_ID == "7"
        assert args.LOG_LEVEL == "DEBUG"
        assert args.VERBOSE is True
        assert args.NO_VERSION_CHECK is True

    def test_replace_binary_new_name(self):
        """Test replace-binary takes an optional new name."""
        args = parse_args(["replace-binary", "news", "news-2.0-1.ezpkg", "--new-name", "magazine"])

        assert (args.NAME, args.FILE, args.NEW_NAME) == ("news", "news-2.0-1.ezpkg", "magazine")

    def test_command_required(self):
        """Test a command must be given."""
        with pytest.raises(SystemExit):
            parse_args([])

    def test_logfile_options_are_exclusive(self):
        """Test --logfile and --no-logfile cannot be combined."""
        with pytest.raises(SystemExit):
            parse_args(["--logfile", "x.log", "--no-logfile", "remove-binary", "news"])


class TestMain:
    """Test main() exit codes against a local repository."""

    def test_install_binary_then_change_class(self, make_archive, tmp_path):
        """Test a binary install and a class change succeed."""
        state = str(tmp_path / "state")
        archive = make_archive("news", {"article": 1, "folder": 2})

        assert _run("--repository-path", state, "--no-logfile", "install-binary", "news", archive) == 0

        repo = LocalRepository(state)
        obj = repo.create_object("Hello", "article")
        assert _run("--repository-path", state, "--no-logfile", "change-class", str(obj.id), "folder") == 0
        assert repo.fetch_object(obj.id).class_id == repo.fetch_class_by_identifier("folder").id

    def test_invalid_reference_exit_code(self, tmp_path):
        """Test a bad object id or class exits with INVALID_REFERENCE."""
        code = _run("--repository-path", str(tmp_path / "state"), "--no-logfile", "change-class", "1", "nothing")

        assert code == ExitCodes.INVALID_REFERENCE.value

    def test_install_folder(self, make_package, tmp_path):
        """Test installing and uninstalling a text-based package folder."""
        state = str(tmp_path / "state")
        package_dir = make_package("news", {"article": 1})

        assert _run("--repository-path", state, "--no-logfile", "install", package_dir) == 0
        assert LocalRepository(state).fetch_class_by_identifier("article") is not None
        assert _run("--repository-path", state, "--no-logfile", "uninstall", package_dir) == 0

    def test_install_non_package(self, tmp_path):
        """Test a folder without package.xml is a file error."""
        (tmp_path / "plain").mkdir()

        code = _run("--repository-path", str(tmp_path / "state"), "--no-logfile", "install", str(tmp_path / "plain"))

        assert code == ExitCodes.FILE_ERROR.value

    def test_extract_without_matches(self, tmp_path):
        """Test a pattern matching nothing is a file error."""
        code = _run("--no-logfile", "extract", str(tmp_path / "*.ezpkg"))

        assert code == ExitCodes.FILE_ERROR.value

    def test_extract(self, make_archive, tmp_path):
        """Test extract explodes the archive beside itself."""
        make_archive("news")

        assert _run("--no-logfile", "extract", str(tmp_path / "dist" / "*.ezpkg")) == 0
        assert (tmp_path / "dist" / "news" / "package.xml").is_file()

    def test_failed_operation_exit_code(self, tmp_path):
        """Test an operation reporting failure exits with OPERATION_FAILED."""
        code = _run(
            "--repository-path", str(tmp_path / "state"), "--no-logfile",
            "install-binary", "news", str(tmp_path / "missing.ezpkg"),
        )

        assert code == ExitCodes.OPERATION_FAILED.value

    def test_missing_config_file(self, tmp_path):
        """Test an explicit config path that does not exist is a file error."""
        code = _run("-c", str(tmp_path / "nope.yml"), "--no-logfile", "remove-binary", "news")

        assert code == ExitCodes.FILE_ERROR.value

    def test_remote_without_url(self, tmp_path, monkeypatch):
        """Test the remote repository without a URL is a configuration error."""
        monkeypatch.delenv("CLASSPKG_REPOSITORY_URL", raising=False)
        monkeypatch.chdir(tmp_path)

        code = _run("--repository", "remote", "--no-logfile", "remove-binary", "news")

        assert code == ExitCodes.FILE_ERROR.value

    def test_writes_diagnostic_log(self, tmp_path, monkeypatch):
        """Test the diagnostic log captures DEBUG records."""
        monkeypatch.chdir(tmp_path)
        log_file = tmp_path / "run.log"

        _run("--repository-path", str(tmp_path / "state"), "--logfile", str(log_file), "remove-binary", "news")

        assert "Remove binary package" in log_file.read_text(encoding="utf-8")
