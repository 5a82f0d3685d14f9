# src/mdscope/core/ignore.py
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pathspec

from mdscope.config import BUILD_ARTIFACT_PATTERNS, DEFAULT_EXCLUDE_PATTERNS

logger = logging.getLogger(__name__)

# Regex metacharacters escaped when they appear literally in a glob.
# Brackets pass through for character classes, backslash escapes the next char.
_LITERAL_SPECIALS = set("+(){}^$|")


@dataclass(frozen=True)
class GitignorePattern:
    """One compiled .gitignore line."""
    glob: str
    regex: re.Pattern
    negated: bool
    directory_only: bool

    def matches(self, relative_path: str, is_directory: bool = False) -> bool:
        for m in self.regex.finditer(relative_path):
            # A directory-only pattern may still hit a file through one of its parents
            if not self.directory_only or is_directory or m.end() < len(relative_path):
                return True
        return False


def glob_to_regex(glob: str) -> str:
    """
    Converts a gitignore glob (already stripped of '!' and trailing '/')
    into a regex searched against a '/'-separated relative path.
    """
    parts = ["^" if "/" in glob else "(^|/)"]
    i = 0
    while i < len(glob):
        c = glob[i]
        if c == "*":
            if glob[i + 1:i + 2] == "*":
                # '**' spans directories and swallows one following '/'
                parts.append(".*")
                i += 2
                if glob[i:i + 1] == "/":
                    i += 1
                continue
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == ".":
            parts.append(r"\.")
        elif c in _LITERAL_SPECIALS:
            parts.append("\\" + c)
        else:
            parts.append(c)
        i += 1
    parts.append("(?=/|$)")
    return "".join(parts)


def parse_gitignore_line(line: str) -> Optional[GitignorePattern]:
    """Returns None for blank lines, comments and globs that fail to compile."""
    pattern = line.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negated = pattern.startswith("!")
    if negated:
        pattern = pattern[1:]
    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]
    if not pattern:
        return None

    try:
        regex = re.compile(glob_to_regex(pattern))
    except re.error as e:
        logger.debug("Skipping malformed gitignore pattern %r: %s", line.strip(), e)
        return None
    return GitignorePattern(glob=pattern, regex=regex, negated=negated, directory_only=directory_only)


class GitignoreMatcher:
    """
    Ordered set of .gitignore patterns. The last pattern matching a path
    decides: the path is ignored unless that pattern is negated.
    """

    def __init__(self, patterns: Iterable[GitignorePattern] = ()):
        self.patterns: Tuple[GitignorePattern, ...] = tuple(patterns)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "GitignoreMatcher":
        compiled = (parse_gitignore_line(line) for line in lines)
        return cls(p for p in compiled if p is not None)

    @classmethod
    def compile(cls, root_dir: Path) -> "GitignoreMatcher":
        """Reads <root_dir>/.gitignore. A missing or unreadable file ignores nothing."""
        gitignore_file = Path(root_dir) / ".gitignore"
        try:
            with open(gitignore_file, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError):
            return cls()
        return cls.from_lines(lines)

    def __len__(self) -> int:
        return len(self.patterns)

    def is_ignored(self, relative_path: str, is_directory: bool = False) -> bool:
        ignored = False
        for pattern in self.patterns:
            if pattern.matches(relative_path, is_directory):
                ignored = not pattern.negated
        return ignored


def load_exclude_spec(
    prune_build_artifacts: bool = True, extra_patterns: Optional[List[str]] = None
) -> pathspec.PathSpec:
    """
    Builds the fixed exclusion spec (node_modules, .git, optionally build
    artifacts) plus any extra patterns from configuration.
    """
    lines = list(DEFAULT_EXCLUDE_PATTERNS)
    if prune_build_artifacts:
        lines.extend(BUILD_ARTIFACT_PATTERNS)
    if extra_patterns:
        lines.extend(extra_patterns)

    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", lines)
    except Exception as e:
        # Built-in exclusions stay active when a user pattern is rejected
        logger.warning("Invalid exclude pattern in configuration (%s); using defaults only", e)
        return pathspec.PathSpec.from_lines("gitwildmatch", list(DEFAULT_EXCLUDE_PATTERNS))


def is_excluded(spec: pathspec.PathSpec, relative_path: str, is_directory: bool = False) -> bool:
    # gitwildmatch directory patterns ('build/') need the trailing slash to match a directory
    return spec.match_file(relative_path + "/" if is_directory else relative_path)
