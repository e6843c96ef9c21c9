"""Comment span providers.

Language-aware comment detection is normally supplied by the host (an editor's
syntax tree, for example). The providers here cover the common cases so the
engine can run standalone.
"""

import re
from bisect import bisect_right
from pathlib import Path
from typing import Protocol

from ..config import ResolvedConfig
from ..github_client.models import CommentSpan

BLOCK_OPEN = "/*"
BLOCK_CLOSE = "*/"
QUOTES = ("'", '"', "`")

# Languages where ' does not open a string literal
LANGUAGE_QUOTES = {
    "lisp": ('"',),
    "rust": ('"',),
}

# Lua block comments: --[[ ... ]] or --[==[ ... ]==]
LUA_BLOCK_OPEN = re.compile(r"--\[(=*)\[")

EXTENSION_LANGUAGES = {
    ".lua": "lua",
    ".py": "python",
    ".go": "go",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".rs": "rust",
    ".nix": "nix",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".java": "java",
    ".rb": "ruby",
    ".sh": "sh",
    ".bash": "bash",
    ".zsh": "zsh",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".sql": "sql",
    ".lisp": "lisp",
    ".el": "lisp",
    ".css": "css",
}


def language_for_path(path: str | Path) -> str | None:
    """Guess the language of a file from its extension."""
    return EXTENSION_LANGUAGES.get(Path(path).suffix.lower())


class CommentSpanProvider(Protocol):
    """Yields the comments found in a source text."""

    def spans(self, text: str, language: str | None) -> list[CommentSpan]: ...


def _line_starts(text: str) -> list[int]:
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return starts


class LineSpanProvider:
    """Treats every non-blank line as a comment."""

    def spans(self, text: str, language: str | None = None) -> list[CommentSpan]:
        spans = []
        for line_number, line in enumerate(text.split("\n"), start=1):
            line = line.rstrip("\r")
            if line.strip():
                spans.append(
                    CommentSpan(text=line, start_line=line_number, start_column=0)
                )
        return spans


class LeaderCommentProvider:
    """Finds line comments by their leader and C-style or Lua block comments.

    String literals are skipped on a single line basis, so a leader inside
    quotes does not start a comment. Multi-line block comments are returned as
    one span with their line breaks intact.
    """

    def __init__(self, config: ResolvedConfig | None = None):
        self.config = config or ResolvedConfig()

    def spans(self, text: str, language: str | None = None) -> list[CommentSpan]:
        leaders = self.config.comment_leaders(language)
        if leaders is None:
            return []
        leaders = sorted(leaders, key=len, reverse=True)
        blocks = self.config.has_block_comments(language)
        quotes = LANGUAGE_QUOTES.get(language or "", QUOTES)
        rust_chars = language == "rust"
        lua_blocks = language == "lua"

        starts = _line_starts(text)
        spans: list[CommentSpan] = []

        def add_span(begin: int, end: int) -> None:
            line_index = bisect_right(starts, begin) - 1
            spans.append(
                CommentSpan(
                    text=text[begin:end],
                    start_line=line_index + 1,
                    start_column=begin - starts[line_index],
                )
            )

        i = 0
        length = len(text)
        while i < length:
            char = text[i]

            if char in quotes:
                i = self._skip_string(text, i)
                continue

            if rust_chars and char == "'":
                i = self._skip_char_literal(text, i)
                continue

            if lua_blocks:
                match = LUA_BLOCK_OPEN.match(text, i)
                if match:
                    closer = "]" + match.group(1) + "]"
                    close = text.find(closer, match.end())
                    end = length if close == -1 else close + len(closer)
                    add_span(i, end)
                    i = end
                    continue

            if blocks and text.startswith(BLOCK_OPEN, i):
                close = text.find(BLOCK_CLOSE, i + len(BLOCK_OPEN))
                end = length if close == -1 else close + len(BLOCK_CLOSE)
                add_span(i, end)
                i = end
                continue

            leader = next((lead for lead in leaders if text.startswith(lead, i)), None)
            if leader is not None:
                end = text.find("\n", i)
                end = length if end == -1 else end
                if end > i and text[end - 1] == "\r":
                    end -= 1
                add_span(i, end)
                i = end
                continue

            i += 1

        return spans

    @staticmethod
    def _skip_string(text: str, start: int) -> int:
        """Return the index just past the string literal opened at start."""
        quote = text[start]
        i = start + 1
        while i < len(text):
            char = text[i]
            if char == "\\":
                i += 2
                continue
            if char == quote:
                return i + 1
            if char == "\n":
                return i
            i += 1
        return i

    @staticmethod
    def _skip_char_literal(text: str, start: int) -> int:
        """Skip a char literal like 'x' or '\\n'; a lifetime skips just the '."""
        if text.startswith("\\", start + 1):
            close = text.find("'", start + 3)
            if close != -1 and "\n" not in text[start:close]:
                return close + 1
        elif (
            start + 2 < len(text)
            and text[start + 1] != "\n"
            and text[start + 2] == "'"
        ):
            return start + 3
        return start + 1
