"""Tests for changing the content class of an object."""

from unittest.mock import MagicMock

import pytest

from errors import InvalidReference
from packages.models import ContentClassRef
from packages.reassign import change_class


def _install_classes(local_repo, *identifiers):
    state = local_repo.load_state()
    for identifier in identifiers:
        state["classes"][identifier] = {"id": local_repo.next_class_id(state), "modified": 1}
    local_repo.save_state(state)


class TestChangeClass:
    """Test change_class against the local repository and mocks."""

    def test_changes_class_and_invalidates_cache(self, local_repo):
        """Test the object is stored with the new class and its cache cleared."""
        _install_classes(local_repo, "article", "blog_post")
        obj = local_repo.create_object("Hello", "article")

        change_class(obj.id, "blog_post", local_repo, local_repo, local_repo)

        stored = local_repo.fetch_object(obj.id)
        assert stored.class_id == local_repo.fetch_class_by_identifier("blog_post").id
        assert local_repo.load_state()["cache"]["invalidated"] == [obj.id]

    def test_accepts_string_object_id(self, local_repo):
        """Test an id given on the command line as text resolves."""
        _install_classes(local_repo, "article", "folder")
        obj = local_repo.create_object("Hello", "article")

        change_class(str(obj.id), "folder", local_repo, local_repo, local_repo)

        assert local_repo.fetch_object(obj.id).class_id == local_repo.fetch_class_by_identifier("folder").id

    def test_unknown_object(self, local_repo):
        """Test a missing object raises and leaves the repository alone."""
        _install_classes(local_repo, "article")
        before = local_repo.load_state()

        with pytest.raises(InvalidReference):
            change_class(99, "article", local_repo, local_repo, local_repo)

        assert local_repo.load_state() == before

    def test_unknown_class(self, local_repo):
        """Test a missing class raises and leaves the object untouched."""
        _install_classes(local_repo, "article")
        obj = local_repo.create_object("Hello", "article")
        before = local_repo.load_state()

        with pytest.raises(InvalidReference) as excinfo:
            change_class(obj.id, "nonexistent", local_repo, local_repo, local_repo)

        assert local_repo.load_state() == before
        assert "nonexistent" in str(excinfo.value)

    def test_failure_has_no_side_effects(self):
        """Test neither store nor cache invalidation run on a bad reference."""
        obj = MagicMock()
        objects = MagicMock()
        objects.fetch_object.return_value = obj
        classes = MagicMock()
        classes.fetch_class_by_identifier.return_value = None
        cache = MagicMock()

        with pytest.raises(InvalidReference):
            change_class(7, "missing", objects, classes, cache)

        obj.set_class.assert_not_called()
        obj.store.assert_not_called()
        cache.invalidate.assert_not_called()

    def test_calls_in_order(self):
        """Test the class is set, then stored, then the cache invalidated."""
        calls = []
        obj = MagicMock()
        obj.id = 7
        obj.set_class.side_effect = lambda ref: calls.append("set_class")
        obj.store.side_effect = lambda: calls.append("store")
        objects = MagicMock()
        objects.fetch_object.return_value = obj
        classes = MagicMock()
        classes.fetch_class_by_identifier.return_value = ContentClassRef(id=3, identifier="folder")
        cache = MagicMock()
        cache.invalidate.side_effect = lambda object_id: calls.append("invalidate")

        change_class(7, "folder", objects, classes, cache)

        assert calls == ["set_class", "store", "invalidate"]
        cache.invalidate.assert_called_once_with(7)
