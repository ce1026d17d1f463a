"""Tests for Router and the descendant check."""

import os

import pytest

from fallbackserver.model.routing import Router, is_descendant
from fallbackserver.model.types import LocalFile, PathTraversal, RemoteProxy


class TestRouter:
    """Test request path resolution."""

    def test_root_path_maps_to_index(self, public):
        router = Router(str(public), "https://example.com")
        target = router.resolve("/", "/")
        assert target == LocalFile(os.path.join(str(public), "index.html"))

    def test_nested_file(self, public):
        router = Router(str(public), "https://example.com")
        target = router.resolve("/css/site.css", "/css/site.css?v=2")
        assert target == LocalFile(os.path.join(str(public), "css", "site.css"))

    def test_missing_file_falls_back_to_remote_with_raw_path(self, public):
        router = Router(str(public), "https://example.com")
        target = router.resolve("/missing.js", "/missing.js?v=1&x=%20y")
        assert target == RemoteProxy("https://example.com/missing.js?v=1&x=%20y")

    def test_directory_is_not_a_local_file(self, public):
        router = Router(str(public), "https://example.com")
        assert router.resolve("/css", "/css") == RemoteProxy("https://example.com/css")

    def test_origin_trailing_slash_is_not_doubled(self, public):
        router = Router(str(public), "https://example.com/")
        assert router.resolve("/a.png", "/a.png") == RemoteProxy("https://example.com/a.png")

    def test_dot_segments_inside_root_are_allowed(self, public):
        router = Router(str(public), "https://example.com")
        target = router.resolve("/css/../app.js", "/css/../app.js")
        assert target == LocalFile(os.path.join(str(public), "app.js"))

    @pytest.mark.parametrize("path", [
        "/../../etc/passwd",
        "/../secret.txt",
        "/css/../../secret.txt",
        "/..",
        "/a\x00b",
    ])
    def test_traversal_is_rejected_without_touching_the_disk(self, public, monkeypatch, path):
        def boom(*args, **kwargs):
            raise AssertionError("filesystem accessed")

        monkeypatch.setattr(os.path, "isfile", boom)
        monkeypatch.setattr(os.path, "exists", boom)
        router = Router(str(public), "https://example.com")
        with pytest.raises(PathTraversal):
            router.resolve(path, path)

    def test_sibling_with_shared_prefix_is_rejected(self, tmp_path):
        root = tmp_path / "public"
        evil = tmp_path / "public-evil"
        root.mkdir()
        evil.mkdir()
        (evil / "x.txt").write_text("nope")

        router = Router(str(root), "https://example.com")
        with pytest.raises(PathTraversal):
            router.resolve("/../public-evil/x.txt", "/../public-evil/x.txt")


class TestIsDescendant:
    """Test the separator-bounded containment check."""

    def test_root_itself(self):
        assert is_descendant(os.path.join(os.sep, "srv", "public"), os.path.join(os.sep, "srv", "public"))

    def test_child(self):
        root = os.path.join(os.sep, "srv", "public")
        assert is_descendant(os.path.join(root, "a", "b.html"), root)

    def test_prefix_sibling(self):
        root = os.path.join(os.sep, "srv", "public")
        assert not is_descendant(os.path.join(os.sep, "srv", "public-evil", "a"), root)

    def test_parent(self):
        assert not is_descendant(os.path.join(os.sep, "srv"), os.path.join(os.sep, "srv", "public"))

    def test_filesystem_root(self):
        assert is_descendant(os.path.join(os.sep, "etc", "passwd"), os.sep)
