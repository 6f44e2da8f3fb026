"""Tests for the path and title filters."""

import pytest

from agents_action.errors import InvalidFilter
from agents_action.services.filters import (
    SkipReason,
    check_filters,
    compile_title_filter,
    matches_path_filter,
)


class TestPathFilter:
    @pytest.mark.parametrize(
        ("path", "pattern"),
        [
            ("docs/guide.md", "docs/**"),
            ("docs/api/reference.md", "docs/**"),
            ("src/app.ts", "src/*.ts"),
            ("README.md", "*.md"),
            ("README.md", "**/*.md"),
            ("docs/api/reference.md", "**/*.md"),
            ("src/a.py", "src/**/*.py"),
            ("src/deep/er/a.py", "src/**/*.py"),
            ("a.ts", "**/*.ts"),
            ("src/view.tsx", "src/*.{ts,tsx}"),
            ("anything/at/all.py", ""),
        ],
    )
    def test_matches(self, path: str, pattern: str) -> None:
        assert matches_path_filter(path, pattern) is True

    @pytest.mark.parametrize(
        ("path", "pattern"),
        [
            ("src/a.ts", "docs/**"),
            ("README.md", "docs/**"),
            ("src/app.js", "src/*.ts"),
            ("Docs/guide.md", "docs/**"),
            ("docs/a/b.md", "docs/*"),
            ("src/nested/app.ts", "src/*.ts"),
            ("lib/a.py", "src/**/*.py"),
        ],
    )
    def test_does_not_match(self, path: str, pattern: str) -> None:
        assert matches_path_filter(path, pattern) is False

    def test_none_pattern_matches_everything(self) -> None:
        assert matches_path_filter("x/y/z", None) is True


class TestTitleFilter:
    def test_unset_pattern_compiles_to_none(self) -> None:
        assert compile_title_filter("") is None
        assert compile_title_filter(None) is None

    def test_invalid_pattern(self) -> None:
        with pytest.raises(InvalidFilter):
            compile_title_filter("feat(")


class TestCheckFilters:
    def test_no_filters_proceed(self) -> None:
        assert check_filters(["src/a.ts"], "Anything") is None

    def test_no_files_without_path_filter_proceeds(self) -> None:
        assert check_filters([], "Anything") is None

    def test_path_filter_with_no_matches_skips(self) -> None:
        reason = check_filters(["src/a.ts", "README.md"], "Anything", path_filter="docs/**")
        assert reason is SkipReason.NO_MATCHING_FILES
        assert reason.value == "no-matching-files"

    def test_path_filter_with_a_match_proceeds(self) -> None:
        assert check_filters(["docs/a.md", "src/a.ts"], "Anything", path_filter="docs/**") is None

    def test_title_filter_uses_search_semantics(self) -> None:
        pattern = compile_title_filter(r"\[agent\]")
        assert check_filters([], "feat: [agent] sort widgets", title_filter=pattern) is None

    def test_title_mismatch_skips(self) -> None:
        pattern = compile_title_filter(r"^feat")
        reason = check_filters(["src/a.ts"], "chore: bump deps", title_filter=pattern)
        assert reason is SkipReason.TITLE_NO_MATCH
        assert reason.value == "title-no-match"

    def test_any_failing_filter_skips(self) -> None:
        """Both filters fail: the run skips, reporting the path filter first."""
        pattern = compile_title_filter(r"^feat")
        reason = check_filters(
            ["src/a.ts"], "chore: bump", path_filter="docs/**", title_filter=pattern
        )
        assert reason is SkipReason.NO_MATCHING_FILES

    def test_root_level_file_under_globstar_proceeds(self) -> None:
        assert check_filters(["README.md"], "Anything", path_filter="**/*.md") is None
