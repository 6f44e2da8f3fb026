"""Path and title filters that can short-circuit a run.

The same ``matches_path_filter`` predicate is used while paginating changed
files and again here, so filtering is order-independent.
"""

import re
from enum import Enum

import structlog
from wcmatch import glob

from agents_action.errors import InvalidFilter

logger = structlog.get_logger()

_GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE


class SkipReason(str, Enum):
    NO_MATCHING_FILES = "no-matching-files"
    TITLE_NO_MATCH = "title-no-match"
    BOT_PR_EXISTS = "bot-pr-exists"
    BOT_COMMENT = "inkeep-bot-comment"


def matches_path_filter(path: str, pattern: str | None) -> bool:
    """Return True if *path* matches the glob *pattern* (or no pattern is set).

    ``**`` spans any number of directories, including none, so ``**/*.md``
    matches ``README.md``.  A single ``*`` stops at ``/``, and brace sets
    such as ``src/*.{ts,tsx}`` are expanded.
    """
    if not pattern:
        return True
    return glob.globmatch(path.lstrip("/"), pattern.lstrip("/"), flags=_GLOB_FLAGS)


def compile_title_filter(pattern: str | None) -> re.Pattern[str] | None:
    """Compile the title regex input, or return None when it is unset.

    Raises:
        InvalidFilter: The pattern is not a valid regular expression.
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidFilter(f'Invalid pr-title-regex "{pattern}": {exc}') from exc


def check_filters(
    paths: list[str],
    title: str,
    path_filter: str | None = None,
    title_filter: re.Pattern[str] | None = None,
) -> SkipReason | None:
    """Return the first skip reason triggered by the filters, or None to proceed.

    An empty file set only skips when a path filter is configured; a PR with
    no changed files and no filter still proceeds.
    """
    if path_filter:
        matching = [p for p in paths if matches_path_filter(p, path_filter)]
        if not matching:
            logger.info("no_files_match_path_filter", path_filter=path_filter)
            return SkipReason.NO_MATCHING_FILES

    if title_filter is not None and not title_filter.search(title):
        logger.info("title_filter_no_match", title=title, pattern=title_filter.pattern)
        return SkipReason.TITLE_NO_MATCH

    return None
