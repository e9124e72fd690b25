"""Utilities for extracting text from PDF resumes."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

import pymupdf4llm

# Page counters such as "Page 2 of 3", "2 / 3" or "- 2 -" on their own line.
_DEFAULT_EXCLUDES: tuple[str, ...] = (
    r"^\s*page\s+\d+(?:\s+of\s+\d+)?\s*$",
    r"^\s*\d+\s*/\s*\d+\s*$",
    r"^\s*-\s*\d+\s*-\s*$",
)


def extract_resume_text(
    pdf_path: str | Path,
    *,
    exclude_patterns: Sequence[str] | None = None,
) -> str:
    """Return markdown text extracted from a PDF, dropping page-counter lines.

    Parameters
    ----------
    pdf_path:
        Path to the source PDF file.
    exclude_patterns:
        Optional regular expressions; any line matching one of them is
        dropped. Defaults to common page-counter formats.
    """

    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(pdf_path)

    markdown = pymupdf4llm.to_markdown(str(pdf_path))
    excludes = list(exclude_patterns) if exclude_patterns is not None else list(_DEFAULT_EXCLUDES)
    patterns = _build_patterns(excludes)

    cleaned_lines: list[str] = []
    for line in markdown.splitlines():
        if line.strip() and any(pattern.search(line) for pattern in patterns):
            continue
        cleaned_lines.append(line.rstrip())
    return re.sub(r"\n{3,}", "\n\n", "\n".join(cleaned_lines)).strip()


def _build_patterns(excludes: Iterable[str]) -> list[re.Pattern[str]]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in excludes]


__all__ = ["extract_resume_text"]
