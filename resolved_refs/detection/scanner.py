"""Turn comment spans into positioned references."""

from collections.abc import Iterable

from ..config import ResolvedConfig
from ..github_client.models import CommentSpan, Reference, ReferenceKind
from .patterns import extract_urls, has_stale_keywords
from .positions import remap_position, span_end


def scan_span(span: CommentSpan, config: ResolvedConfig) -> list[Reference]:
    """Extract references from a single comment span."""
    matches = extract_urls(span.text, config.tracker_host)
    if not matches:
        return []

    # Computed once and shared by every reference in the comment
    has_keywords = has_stale_keywords(span.text, config.stale_keywords)
    comment_text = span.text.strip()

    references = []
    for match in matches:
        if match.kind == ReferenceKind.PULL_REQUEST and not config.include_prs:
            continue

        line, column = remap_position(
            span.start_line, span.start_column, span.text, match.start
        )
        references.append(
            Reference(
                url=match.url,
                host=config.tracker_host,
                owner=match.owner,
                repo=match.repo,
                kind=match.kind,
                number=match.number,
                line=line,
                start_column=column,
                end_column=span_end(column, match.matched_text),
                comment_text=comment_text,
                has_stale_keyword=has_keywords,
            )
        )

    return references


def scan_spans(
    spans: Iterable[CommentSpan], config: ResolvedConfig
) -> list[Reference]:
    """Scan comment spans for issue/PR references, ordered by position."""
    references = []
    for span in spans:
        references.extend(scan_span(span, config))

    references.sort(key=lambda ref: (ref.line, ref.start_column))
    return references


def dedupe_by_url(refs: Iterable[Reference]) -> list[Reference]:
    """Deduplicate references by URL, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for ref in refs:
        if ref.url not in seen:
            seen.add(ref.url)
            result.append(ref)
    return result


def unique_urls(refs: Iterable[Reference]) -> list[str]:
    """Get unique URLs from references in first-seen order."""
    return [ref.url for ref in dedupe_by_url(refs)]
