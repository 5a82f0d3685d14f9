# src/mdscope/core/fuzzy.py
import math
import os
import re
from typing import List, Optional, Sequence

from mdscope.models import FileEntry

DEFAULT_TOLERANCE = 0.2

# Separators used to split a file name into words for prefix matching
_WORD_SEPARATORS = re.compile(r"[-_ .]+")


def levenshtein_distance(s1: str, s2: str) -> int:
    """Classic edit distance with unit costs, keeping only two rows."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    prev = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        curr = [i] + [0] * len(s2)
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            curr[j] = min(
                curr[j - 1] + 1,      # insertion
                prev[j] + 1,          # deletion
                prev[j - 1] + cost,   # substitution
            )
        prev = curr
    return prev[-1]


def score_entry(query: str, entry: FileEntry, tolerance: float = DEFAULT_TOLERANCE) -> float:
    """
    Relevance of one file for a lowercased query. Tiers are tried in order
    and a later tier only runs while the score is still zero:

    1. query inside the file name (+10, +5 at start, +10 exact or '<query>.md')
    2. query inside the relative path (+3)
    3. query words prefixing file-name words (+2 each)
    4. Levenshtein against the name without extension, within tolerance

    The total is doubled when the file name contains the query.
    """
    file_name = entry.name.lower()
    file_path = entry.relative_path.lower()
    score = 0.0

    if query in file_name:
        score += 10.0
        if file_name.startswith(query):
            score += 5.0
        if file_name == query or file_name == query + ".md":
            score += 10.0

    if score == 0 and query in file_path:
        score += 3.0

    if score == 0:
        query_words = [w for w in query.split(" ") if w]
        file_words = [w for w in _WORD_SEPARATORS.split(file_name) if w]
        prefix_matches = sum(1 for qw in query_words if any(fw.startswith(qw) for fw in file_words))
        score += prefix_matches * 2.0

    if score == 0:
        max_distance = max(1, math.floor(len(query) * tolerance))
        stem, _ = os.path.splitext(file_name)
        distance = levenshtein_distance(query, stem)
        if distance <= max_distance:
            score += max(0.1, 1.0 - distance / len(query))

    # NOTE: this re-rewards the tier 1 substring hit; kept as is for ranking compatibility
    if query in file_name:
        score *= 2.0
    return score


def fuzzy_find_files(
    query: str,
    files: Sequence[FileEntry],
    limit: Optional[int] = None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> List[FileEntry]:
    """Quick-open ranking of files by score, best first. An empty query returns files as given."""
    low_query = query.lower()
    if not low_query:
        return list(files) if not isinstance(files, list) else files

    scored = []
    for entry in files:
        score = score_entry(low_query, entry, tolerance)
        if score > 0:
            scored.append((score, entry))

    # sorted() is stable: equal scores keep input order
    scored.sort(key=lambda pair: pair[0], reverse=True)
    ranked = [entry for _, entry in scored]
    return ranked[:limit] if limit is not None else ranked
