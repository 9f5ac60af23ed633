import pytest

from router.path_normalizer import first_segment, is_template, normalize_path


@pytest.mark.parametrize("raw, expected", [
    ("/a/b/", "/a/b"),
    ("/a/b", "/a/b"),
    ("a/b", "/a/b"),
    ("//a/b", "/a/b"),
    ("/", "/"),
    ("", "/"),
    (None, "/"),
    ("/users/{id}/", "/users/{id}"),
])
def test_normalize_without_base_path(raw, expected):
    assert normalize_path(raw) == expected


@pytest.mark.parametrize("raw, base, expected", [
    ("/users", "/api", "/api/users"),
    ("/api/users", "/api", "/api/users"),
    ("/api/users/", "/api", "/api/users"),
    ("/", "/api", "/api"),
    ("/api", "/api", "/api"),
    ("/users", "api/", "/api/users"),
    ("/apiary", "/api", "/api/apiary"),
    ("/users", "/", "/users"),
    ("/users", "", "/users"),
])
def test_normalize_with_base_path(raw, base, expected):
    assert normalize_path(raw, base) == expected


@pytest.mark.parametrize("raw", ["/a/b/", "a", "/", "", "/api", "/api/x//", "x/api/", "/v1/users/{id}"])
@pytest.mark.parametrize("base", [None, "", "/", "/api", "api/", "/v1"])
def test_normalization_is_idempotent(raw, base):
    once = normalize_path(raw, base)
    assert normalize_path(once, base) == once


def test_trailing_slash_equivalence():
    assert normalize_path("/a/b/") == normalize_path("/a/b")


def test_query_string_and_encoding_are_left_alone():
    assert normalize_path("/search?q=1") == "/search?q=1"
    assert normalize_path("/files/a%20b") == "/files/a%20b"


def test_template_helpers():
    assert is_template("/users/{id}")
    assert not is_template("/users/me")
    assert first_segment("/users/{id}") == "users"
    assert first_segment("/") is None
