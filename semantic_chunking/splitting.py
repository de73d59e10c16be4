"""
Pick the most semantically meaningful delimiter available in a piece of text.
"""

from __future__ import annotations

import re
from typing import List, Tuple

NON_WHITESPACE_SEMANTIC_SPLITTERS: Tuple[str, ...] = (
    # Sentence terminators.
    ".", "?", "!", "*",
    # Clause separators.
    ";", ",", "(", ")", "[", "]", "“", "”", "‘", "’", "'", '"', "`",
    # Sentence interrupters.
    ":", "—", "…",
    # Word joiners.
    "/", "\\", "–", "&", "-",
)

_NEWLINE_RUNS = re.compile(r"[\r\n]+")
_TAB_RUNS = re.compile(r"\t+")
_WHITESPACE_RUNS = re.compile(r"\s+")
_ANY_WHITESPACE = re.compile(r"\s")


def _longest_run(pattern: re.Pattern, text: str) -> str:
    # max() keeps the first of equally long runs.
    return max(pattern.findall(text), key=len)


def split_text(text: str) -> Tuple[str, bool, List[str]]:
    """
    Split ``text`` on the most desirable splitter it contains.

    Returns ``(splitter, splitter_is_whitespace, splits)``. Joining ``splits``
    with ``splitter`` always gives back ``text``. When nothing better is found
    the text is exploded into characters and the splitter is ``""``.
    """

    splitter_is_whitespace = True

    if "\n" in text or "\r" in text:
        splitter = _longest_run(_NEWLINE_RUNS, text)
    elif "\t" in text:
        splitter = _longest_run(_TAB_RUNS, text)
    elif _ANY_WHITESPACE.search(text):
        splitter = _longest_run(_WHITESPACE_RUNS, text)

        # A lone space is a weak boundary, so prefer whitespace that follows
        # punctuation if there is any.
        if len(splitter) == 1:
            for preceder in NON_WHITESPACE_SEMANTIC_SPLITTERS:
                escaped_preceder = re.escape(preceder)
                match = re.search(rf"{escaped_preceder}(\s)", text)
                if match:
                    splitter = match.group(1)
                    escaped_splitter = re.escape(splitter)
                    splits = re.split(rf"(?<={escaped_preceder}){escaped_splitter}", text)
                    return splitter, splitter_is_whitespace, splits
    else:
        for splitter in NON_WHITESPACE_SEMANTIC_SPLITTERS:
            if splitter in text:
                splitter_is_whitespace = False
                break
        else:
            return "", splitter_is_whitespace, list(text)

    # str.split keeps trailing empty strings, so a closing splitter survives.
    return splitter, splitter_is_whitespace, text.split(splitter)
