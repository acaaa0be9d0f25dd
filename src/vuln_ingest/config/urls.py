from __future__ import annotations

from typing import Sequence


DEFAULT_CODE_SEARCH_URL = "https://api.github.com/search/code"
RAW_CONTENT_MEDIA_TYPE = "application/vnd.github.v3.raw"


def build_code_search_query(repo: str, filenames: Sequence[str] | None = None) -> str:
    """Build the ``q`` parameter of a GitHub code search.

    With filename hints every hint becomes a ``filename:<hint>.json`` term; without
    hints the search is restricted to ``extension:json`` instead.

    Example:
        >>> build_code_search_query("o/r", ["a", "b"])
        'repo:o/r filename:a.json filename:b.json'
        >>> build_code_search_query("o/r")
        'repo:o/r extension:json'
    """
    terms = [f"repo:{repo}"]
    if filenames:
        terms.extend(f"filename:{name}.json" for name in filenames)
    else:
        terms.append("extension:json")
    return " ".join(terms)
