"""
Line-oriented parser for the model's SUMMARY/HIGHLIGHTS reply.

    SEEKING_SUMMARY --"SUMMARY: ..."--> SEEKING_HIGHLIGHTS --"HIGHLIGHTS:"--> IN_HIGHLIGHTS

In SEEKING_HIGHLIGHTS, plain lines continue the summary. In IN_HIGHLIGHTS each
"- " line is one highlight and the first other non-empty line stops parsing.
Callers always get a non-empty summary and highlight list back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

SUMMARY_PLACEHOLDER = "AI summary not available"
HIGHLIGHTS_PLACEHOLDER = ("No highlights generated",)

SUMMARY_MARKER = "SUMMARY:"
HIGHLIGHTS_MARKER = "HIGHLIGHTS:"
BULLET = "- "


class ParseState(str, Enum):
    SEEKING_SUMMARY = "seeking_summary"
    SEEKING_HIGHLIGHTS = "seeking_highlights"
    IN_HIGHLIGHTS = "in_highlights"


@dataclass
class ParsedSummary:
    summary: str
    highlights: list[str] = field(default_factory=list)


def parse_ai_response(content: str | None) -> ParsedSummary:
    state = ParseState.SEEKING_SUMMARY
    summary_parts: list[str] = []
    highlights: list[str] = []

    for line in (content or "").splitlines():
        s = line.strip()
        if state is ParseState.IN_HIGHLIGHTS:
            if not s:
                continue
            if s.startswith(BULLET):
                item = s[len(BULLET):].strip()
                if item:
                    highlights.append(item)
                continue
            break

        if s.startswith(HIGHLIGHTS_MARKER):
            state = ParseState.IN_HIGHLIGHTS
        elif s.startswith(SUMMARY_MARKER) and state is ParseState.SEEKING_SUMMARY:
            first = s[len(SUMMARY_MARKER):].strip()
            if first:
                summary_parts.append(first)
            state = ParseState.SEEKING_HIGHLIGHTS
        elif state is ParseState.SEEKING_HIGHLIGHTS and s:
            summary_parts.append(s)

    summary = " ".join(summary_parts).strip()
    return ParsedSummary(
        summary=summary or SUMMARY_PLACEHOLDER,
        highlights=highlights or list(HIGHLIGHTS_PLACEHOLDER),
    )
