import os

import pytest

from simple_store.app.services.key_resolver import (
    InvalidKey,
    KeyResolver,
    PathEscape,
    is_valid_key,
    parse_key,
    resolve,
)


@pytest.fixture
def root(tmp_path):
    root = tmp_path / "store"
    root.mkdir()
    return root


@pytest.mark.parametrize("key", ["a", "report.md", "A-Z_0-9", "...", ".hidden", "x" * 200])
def test_valid_keys(key):
    assert is_valid_key(key)


@pytest.mark.parametrize("key", [None, "", "a/b", "a b", "a\n", "café", "a\\b", "a:b", "%2e%2e"])
def test_invalid_keys(key):
    assert not is_valid_key(key)


def test_parse_key_strips_one_leading_slash():
    assert parse_key("/report.md") == "report.md"
    with pytest.raises(InvalidKey):
        parse_key("//report.md")
    with pytest.raises(InvalidKey):
        parse_key("/")


def test_resolve_returns_path_inside_root(root):
    path = resolve(root, "/report.md")
    assert path == root.resolve() / "report.md"
    # nothing is created
    assert not path.exists()


def test_resolve_uses_canonical_root(tmp_path, root):
    link = tmp_path / "link-to-store"
    link.symlink_to(root)

    resolver = KeyResolver(link)
    assert resolver.root == root.resolve()
    assert resolver.resolve("value") == root.resolve() / "value"


@pytest.mark.parametrize("key", ["..", ".", "/..", "/."])
def test_dot_keys_escape(root, key):
    with pytest.raises(PathEscape):
        resolve(root, key)


@pytest.mark.parametrize("key", ["../etc/passwd", "/../../etc/passwd", "a/../b", ""])
def test_traversal_keys_are_invalid(root, key):
    with pytest.raises(InvalidKey):
        resolve(root, key)


def test_symlink_out_of_root_escapes(tmp_path, root):
    outside = tmp_path / "outside.txt"
    outside.write_bytes(b"x")
    (root / "link").symlink_to(outside)

    with pytest.raises(PathEscape):
        resolve(root, "link")


def test_symlink_inside_root_is_allowed(root):
    (root / "target").write_bytes(b"x")
    (root / "alias").symlink_to(root / "target")

    assert resolve(root, "alias") == root.resolve() / "target"


def test_resolved_paths_always_under_root(root):
    prefix = str(root.resolve()) + os.sep
    for key in ["a", "...", "....", "-", "_", ".a."]:
        assert str(resolve(root, key)).startswith(prefix)
