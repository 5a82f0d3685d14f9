# src/mdscope/models.py
import json
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Tuple

from mdscope.config import MARKDOWN_EXTENSIONS
from mdscope.utils.formatting import natural_key

# Stand-in modification time when filesystem metadata cannot be read
DISTANT_PAST = datetime(1, 1, 1, tzinfo=timezone.utc)


def is_markdown_file(name: str) -> bool:
    _, dot, ext = name.rpartition(".")
    return bool(dot) and ext.lower() in MARKDOWN_EXTENSIONS


@dataclass(frozen=True)
class FileEntry:
    """Immutable metadata for one file discovered by a scan."""
    id: str
    name: str
    relative_path: str
    absolute_path: str
    size: int
    modified_date: datetime
    is_markdown: bool

    @property
    def directory(self) -> str:
        """Parent directory of the entry relative to the scan root ('' at root)."""
        return posixpath.dirname(self.relative_path)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "relativePath": self.relative_path,
            "absolutePath": self.absolute_path,
            "size": self.size,
            "modifiedDate": self.modified_date.isoformat(),
            "isMarkdown": self.is_markdown,
        }


class FileFilter(Enum):
    MARKDOWN_ONLY = "*.md"
    ALL_FILES = "*"

    @property
    def label(self) -> str:
        return "Markdown Only" if self is FileFilter.MARKDOWN_ONLY else "All Files"

    def matches(self, entry: FileEntry) -> bool:
        if self is FileFilter.MARKDOWN_ONLY:
            return entry.is_markdown
        return True


class SearchMode(Enum):
    FILENAME = "filename"
    CONTENT = "content"


class SortMethod(Enum):
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    SIZE_DESC = "size-desc"
    SIZE_ASC = "size-asc"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]

    def sort(self, entries: List[FileEntry]) -> List[FileEntry]:
        if self is SortMethod.NAME_ASC:
            return sorted(entries, key=lambda e: natural_key(e.relative_path))
        if self is SortMethod.NAME_DESC:
            return sorted(entries, key=lambda e: natural_key(e.relative_path), reverse=True)
        if self is SortMethod.DATE_DESC:
            return sorted(entries, key=lambda e: e.modified_date, reverse=True)
        if self is SortMethod.DATE_ASC:
            return sorted(entries, key=lambda e: e.modified_date)
        if self is SortMethod.SIZE_DESC:
            return sorted(entries, key=lambda e: e.size, reverse=True)
        return sorted(entries, key=lambda e: e.size)


_SORT_LABELS = {
    SortMethod.NAME_ASC: "Name (A→Z)",
    SortMethod.NAME_DESC: "Name (Z→A)",
    SortMethod.DATE_DESC: "Newest First",
    SortMethod.DATE_ASC: "Oldest First",
    SortMethod.SIZE_DESC: "Largest First",
    SortMethod.SIZE_ASC: "Smallest First",
}


# --- Search results (JSON shape served by /api/search) ---

@dataclass(frozen=True)
class ContextLine:
    line_number: int
    text: str
    is_match: bool

    def to_dict(self) -> dict:
        return {"lineNumber": self.line_number, "text": self.text, "isMatch": self.is_match}

    @classmethod
    def from_dict(cls, data: dict) -> "ContextLine":
        return cls(line_number=data["lineNumber"], text=data["text"], is_match=data["isMatch"])


@dataclass(frozen=True)
class SearchMatch:
    line_number: int
    text: str
    context_lines: Tuple[ContextLine, ...] = ()

    def to_dict(self) -> dict:
        return {
            "lineNumber": self.line_number,
            "text": self.text,
            "contextLines": [c.to_dict() for c in self.context_lines],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchMatch":
        return cls(
            line_number=data["lineNumber"],
            text=data["text"],
            context_lines=tuple(ContextLine.from_dict(c) for c in data.get("contextLines", [])),
        )


@dataclass(frozen=True)
class SearchResult:
    """All matches of a query within one file."""
    path: str
    file_name: str
    directory: str
    matches: Tuple[SearchMatch, ...] = field(default_factory=tuple)

    @classmethod
    def for_entry(cls, entry: FileEntry, matches=()) -> "SearchResult":
        return cls(
            path=entry.relative_path,
            file_name=entry.name,
            directory=entry.directory,
            matches=tuple(matches),
        )

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "fileName": self.file_name,
            "directory": self.directory,
            "matches": [m.to_dict() for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        return cls(
            path=data["path"],
            file_name=data["fileName"],
            directory=data["directory"],
            matches=tuple(SearchMatch.from_dict(m) for m in data.get("matches") or []),
        )


def results_to_json(results: List[SearchResult]) -> str:
    return json.dumps([r.to_dict() for r in results], ensure_ascii=False)


def results_from_json(text: str) -> List[SearchResult]:
    return [SearchResult.from_dict(item) for item in json.loads(text)]
