"""Fuzzy and exact matching of palette queries against command names.

Match ranges are half-open character index ranges into the target string.
"""

from __future__ import annotations

from dataclasses import dataclass, field

_SEPARATOR_BONUS: dict[str, int] = {
    "/": 5,
    "\\": 5,
    "_": 4,
    "-": 4,
    ".": 4,
    " ": 4,
    "'": 4,
    '"': 4,
    ":": 4,
}

_QUERY_NOISE = frozenset("*\u2026\"' ")

_MIN_WORD_PREFIX_LEN = 3


@dataclass(frozen=True)
class MatchRange:
    """A matched slice of the target: ``target[start:end]``."""

    start: int
    end: int


@dataclass(frozen=True)
class MatchResult:
    """The score of a match and where in the target it matched."""

    score: int
    ranges: tuple[MatchRange, ...]
    is_prefix: bool
    span: int


@dataclass(frozen=True)
class QueryPiece:
    """One whitespace-separated part of a query."""

    normalized: str
    normalized_lower: str
    expect_contiguous_match: bool


@dataclass(frozen=True)
class PreparedQuery:
    """A query cleaned up and split once, ready to score many targets."""

    normalized: str
    normalized_lower: str
    pieces: tuple[QueryPiece, ...] = field(default_factory=tuple)
    expect_contiguous_match: bool = False


def _normalize_query(query: str) -> str:
    return "".join(ch for ch in query if ch not in _QUERY_NOISE)


def _expects_exact_match(query: str) -> bool:
    return len(query) >= 2 and query.startswith('"') and query.endswith('"')


def _strip_exact_quotes(query: str) -> str:
    return query[1:-1] if _expects_exact_match(query) else query


def prepare_query(query: str) -> PreparedQuery:
    """Normalise a raw query; a query wrapped in double quotes matches contiguously."""
    original = query.strip()
    contiguous = _expects_exact_match(original)
    normalized = _strip_exact_quotes(original) if contiguous else _normalize_query(original)

    pieces: list[QueryPiece] = []
    if not contiguous:
        for raw in original.split():
            piece = _normalize_query(raw)
            if piece:
                pieces.append(
                    QueryPiece(
                        normalized=piece,
                        normalized_lower=piece.lower(),
                        expect_contiguous_match=_expects_exact_match(raw),
                    )
                )

    return PreparedQuery(
        normalized=normalized,
        normalized_lower=normalized.lower(),
        pieces=tuple(pieces),
        expect_contiguous_match=contiguous,
    )


def score_fuzzy(target: str, query: PreparedQuery) -> MatchResult | None:
    """Score ``target`` against a prepared query; None when it does not match."""
    if not target or not query.normalized:
        return None

    if len(query.pieces) > 1:
        score = 0
        is_prefix = False
        ranges: list[MatchRange] = []
        for piece in query.pieces:
            result = _score_piece(target, piece)
            if result is None:
                return None
            score += result.score
            is_prefix |= result.is_prefix
            ranges.extend(result.ranges)
        merged = _normalize_ranges(ranges)
        return MatchResult(score, merged, is_prefix, _match_span(merged))

    whole = QueryPiece(
        normalized=query.normalized,
        normalized_lower=query.normalized_lower,
        expect_contiguous_match=query.expect_contiguous_match,
    )
    return _score_piece(target, whole)


def get_score(target: str, query: str) -> MatchResult | None:
    """Prepare ``query`` and score ``target`` against it."""
    return score_fuzzy(target, prepare_query(query))


def _score_piece(target: str, piece: QueryPiece) -> MatchResult | None:
    if not piece.normalized:
        return None
    if piece.expect_contiguous_match:
        return _score_contiguous(target, piece)
    return _score_fuzzy_piece(target, piece)


def _score_fuzzy_piece(target: str, piece: QueryPiece) -> MatchResult | None:
    lowers = [ch.lower() for ch in target]
    query_chars = list(piece.normalized)
    query_lower = list(piece.normalized_lower)
    target_len = len(target)
    query_len = len(query_chars)

    if target_len < query_len or query_len == 0:
        return None

    scores = [[0] * target_len for _ in range(query_len)]
    matches = [[0] * target_len for _ in range(query_len)]

    for qi, query_char in enumerate(query_chars):
        row_scores, row_matches = scores[qi], matches[qi]
        prev_scores = scores[qi - 1] if qi else None
        prev_matches = matches[qi - 1] if qi else None

        for ti in range(target_len):
            left = row_scores[ti - 1] if ti else 0
            if qi and ti:
                diagonal = prev_scores[ti - 1]
                sequence_len = prev_matches[ti - 1]
            else:
                diagonal = 0
                sequence_len = 0

            if qi and diagonal == 0:
                char_score = 0
            else:
                char_score = _char_score(
                    query_char, query_lower[qi], target, lowers, ti, sequence_len
                )

            if char_score > 0 and diagonal + char_score >= left:
                row_matches[ti] = sequence_len + 1
                row_scores[ti] = diagonal + char_score
            else:
                row_matches[ti] = 0
                row_scores[ti] = left

    score = scores[-1][-1]
    if score == 0:
        return None

    positions: list[int] = []
    qi, ti = query_len, target_len
    while qi > 0 and ti > 0:
        if matches[qi - 1][ti - 1]:
            positions.append(ti - 1)
            qi -= 1
        ti -= 1

    if len(positions) != query_len:
        return None

    positions.reverse()
    ranges = _positions_to_ranges(positions)
    fuzzy = MatchResult(
        score=score,
        ranges=ranges,
        is_prefix=target.lower().startswith(piece.normalized_lower),
        span=_match_span(ranges),
    )

    word_prefix = _score_word_prefix(target, lowers, query_lower)
    if word_prefix is not None and word_prefix.score > fuzzy.score:
        return word_prefix
    return fuzzy


def _score_contiguous(target: str, piece: QueryPiece) -> MatchResult | None:
    lowers = [ch.lower() for ch in target]
    query_lower = list(piece.normalized_lower)
    length = len(query_lower)
    if not length or len(lowers) < length:
        return None

    for start in range(len(lowers) - length + 1):
        if lowers[start : start + length] == query_lower:
            end = start + length
            return MatchResult(
                score=200 + length,
                ranges=(MatchRange(start, end),),
                is_prefix=start == 0,
                span=end - start,
            )
    return None


def _score_word_prefix(
    target: str, lowers: list[str], query_lower: list[str]
) -> MatchResult | None:
    length = len(query_lower)
    if length < _MIN_WORD_PREFIX_LEN or len(lowers) < length:
        return None

    for start in range(len(lowers) - length + 1):
        if not _is_word_start(target, start):
            continue
        if lowers[start : start + length] != query_lower:
            continue

        end = start + length
        is_full_word = end == len(target) or target[end] in _SEPARATOR_BONUS
        score = 80 + length * 10 + (30 if is_full_word else 0) + (8 if start == 0 else 0)
        return MatchResult(
            score=score,
            ranges=(MatchRange(start, end),),
            is_prefix=start == 0,
            span=end - start,
        )
    return None


def _is_word_start(target: str, index: int) -> bool:
    return index == 0 or target[index - 1] in _SEPARATOR_BONUS


def _char_score(
    query_char: str,
    query_lower: str,
    target: str,
    lowers: list[str],
    index: int,
    sequence_len: int,
) -> int:
    if query_lower != lowers[index]:
        return 0

    target_char = target[index]
    score = 1
    if query_char == target_char:
        score += 1
    if sequence_len > 0:
        score += min(sequence_len, 3) * 6 + max(sequence_len - 3, 0) * 3

    if index == 0:
        score += 8
    elif (bonus := _SEPARATOR_BONUS.get(target[index - 1])) is not None:
        score += bonus
    elif target_char.isupper() and sequence_len == 0:
        score += 2

    return score


def _positions_to_ranges(positions: list[int]) -> tuple[MatchRange, ...]:
    ranges: list[MatchRange] = []
    for position in positions:
        if ranges and ranges[-1].end == position:
            ranges[-1] = MatchRange(ranges[-1].start, position + 1)
        else:
            ranges.append(MatchRange(position, position + 1))
    return tuple(ranges)


def _normalize_ranges(ranges: list[MatchRange]) -> tuple[MatchRange, ...]:
    merged: list[MatchRange] = []
    for current in sorted(ranges, key=lambda r: r.start):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = MatchRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return tuple(merged)


def _match_span(ranges: tuple[MatchRange, ...]) -> int:
    if not ranges:
        return 0
    return ranges[-1].end - ranges[0].start