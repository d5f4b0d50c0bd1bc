"""Tests for virtual path utilities."""

import pytest

from projectfs.core.errors import InvalidPath, NameInvalid
from projectfs.fs.paths import (
    NameIssue,
    basename,
    dirname,
    ensure_valid_name,
    extname,
    is_absolute_path,
    is_sub_path,
    join_path,
    normalize_path,
    relative_path,
    split_path,
    validate_name,
)


class TestNormalizePath:
    """Test path normalization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("", "/"),
            ("/", "/"),
            ("//", "/"),
            ("src", "/src"),
            ("/src/", "/src"),
            ("src//components///ui", "/src/components/ui"),
            ("src\\components\\Button.tsx", "/src/components/Button.tsx"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected

    def test_is_idempotent(self) -> None:
        """Normalizing twice gives the same result as once."""
        once = normalize_path("a//b/c/")
        assert normalize_path(once) == once

    def test_split_path_drops_empty_segments(self) -> None:
        assert split_path("/a//b/") == ["a", "b"]
        assert split_path("/") == []


class TestJoinAndSplit:
    """Test joining and taking paths apart."""

    def test_join_path(self) -> None:
        assert join_path("/", "app") == "/app"
        assert join_path("/app", "page.tsx") == "/app/page.tsx"
        assert join_path("/a/", "/b/", "c") == "/a/b/c"

    def test_dirname(self) -> None:
        assert dirname("/a/b/c.txt") == "/a/b"
        assert dirname("/a") == "/"
        assert dirname("/") == "/"

    def test_basename(self) -> None:
        assert basename("/a/b/c.txt") == "c.txt"
        assert basename("/a/b/c.txt", ".txt") == "c"
        assert basename("/") == ""

    def test_basename_keeps_name_equal_to_extension(self) -> None:
        assert basename("/.zip", ".zip") == ".zip"

    def test_extname(self) -> None:
        assert extname("/a/page.tsx") == ".tsx"
        assert extname("/archive.tar.gz") == ".gz"
        assert extname("/Makefile") == ""

    def test_dotfiles_have_no_extension(self) -> None:
        assert extname("/.gitignore") == ""

    def test_is_absolute_path(self) -> None:
        assert is_absolute_path("/a")
        assert is_absolute_path("\\a")
        assert not is_absolute_path("a")
        assert not is_absolute_path("")


class TestIsSubPath:
    """Test strict sub-path detection."""

    def test_nested_path_is_sub_path(self) -> None:
        assert is_sub_path("/a", "/a/b")
        assert is_sub_path("/a", "/a/b/c")
        assert is_sub_path("/", "/a")

    def test_path_is_not_sub_path_of_itself(self) -> None:
        assert not is_sub_path("/a", "/a")
        assert not is_sub_path("/", "/")

    def test_shared_prefix_is_not_enough(self) -> None:
        """/ab is not inside /a even though the strings share a prefix."""
        assert not is_sub_path("/a", "/ab")

    def test_parent_is_not_sub_path_of_child(self) -> None:
        assert not is_sub_path("/a/b", "/a")


class TestRelativePath:
    def test_sibling_directory(self) -> None:
        assert relative_path("/src/components", "/src/lib/util.ts") == "../lib/util.ts"

    def test_descendant(self) -> None:
        assert relative_path("/src", "/src/app/page.tsx") == "app/page.tsx"

    def test_same_path(self) -> None:
        assert relative_path("/src", "/src") == "."


class TestValidateName:
    """Test node name validation."""

    @pytest.mark.parametrize(
        "name", ["page.tsx", "README", ".env", "my file.txt", "a" * 255, "ünïcödé"]
    )
    def test_valid_names(self, name: str) -> None:
        assert validate_name(name) is None

    @pytest.mark.parametrize(
        ("name", "issue"),
        [
            ("", NameIssue.EMPTY),
            ("   ", NameIssue.EMPTY),
            ("a/b", NameIssue.CONTAINS_SEPARATOR),
            ("a\\b", NameIssue.CONTAINS_SEPARATOR),
            ("a<b", NameIssue.INVALID_CHARACTER),
            ("what?", NameIssue.INVALID_CHARACTER),
            ('say"hi"', NameIssue.INVALID_CHARACTER),
            ("tab\there", NameIssue.INVALID_CHARACTER),
            ("del\x7f", NameIssue.INVALID_CHARACTER),
            (".", NameIssue.RESERVED_NAME),
            ("..", NameIssue.RESERVED_NAME),
            ("a" * 256, NameIssue.TOO_LONG),
        ],
    )
    def test_invalid_names(self, name: str, issue: NameIssue) -> None:
        assert validate_name(name) is issue

    def test_separator_reported_before_invalid_character(self) -> None:
        assert validate_name("a/b?") is NameIssue.CONTAINS_SEPARATOR

    def test_issue_has_description(self) -> None:
        assert "reserved" in NameIssue.RESERVED_NAME.describe()

    def test_ensure_valid_name_raises(self) -> None:
        with pytest.raises(NameInvalid) as exc_info:
            ensure_valid_name("..")

        assert exc_info.value.issue is NameIssue.RESERVED_NAME
        assert exc_info.value.name == ".."
        assert isinstance(exc_info.value, InvalidPath)

    def test_ensure_valid_name_accepts_valid_name(self) -> None:
        ensure_valid_name("index.ts")
