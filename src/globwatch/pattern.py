"""Glob pattern language with a recursive directory wildcard.

Patterns are matched against ``/`` separated paths relative to some root.
Besides the usual ``*``, ``?`` and ``[...]`` operators a segment consisting
of exactly ``**`` matches zero or more whole directory segments::

    pattern   = segment , { '/' , segment } ;
    segment   = '**' | { literal | '?' | '*' | group | escaped } ;
    group     = '[' , [ '^' ] , { member | range } , ']' ;
    range     = member , '-' , member ;
    member    = literal | escaped ;
    escaped   = '\\' , literal ;

A ``**`` ending the pattern matches whatever remains of the path, including
nothing at all: ``a/**`` matches ``a/`` and ``a/x/y``, and ``**`` alone matches
every path. Anywhere else the path must end on a whole token, or on a single
remaining ``*``.

Matching uses backtracking over an explicit stack of (token, path) cursors.
Adversarial patterns with many ``*`` operators can still take exponential
time; no memoization is attempted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from .fs import FileSystem, WalkError

logger = logging.getLogger(__name__)

SEPARATOR = "/"
SINGLE_WILDCARD = "?"
ANY_WILDCARD = "*"
ESCAPE = "\\"
GROUP_OPEN = "["
GROUP_CLOSE = "]"
GROUP_NEGATE = "^"
GROUP_RANGE = "-"


class PatternError(ValueError):
    """Raised when a pattern string is malformed."""

    def __init__(self, message: str, *, pattern: str, position: int):
        super().__init__(f"invalid pattern {pattern!r} at position {position}: {message}")
        self.pattern = pattern
        self.position = position


class TokenType(str, Enum):
    """Kinds of tokens a pattern compiles to."""

    LITERAL = "literal"
    SEPARATOR = "separator"
    SINGLE_WILDCARD = "single_wildcard"
    ANY_WILDCARD = "any_wildcard"
    ANY_DIRECTORIES = "any_directories"
    GROUP = "group"


@dataclass(frozen=True)
class Token:
    """A single compiled unit of a pattern."""

    type: TokenType
    char: Optional[str] = None
    negated: bool = False
    characters: FrozenSet[str] = field(default_factory=frozenset)
    ranges: Tuple[Tuple[str, str], ...] = ()

    def accepts(self, char: str) -> bool:
        """Return whether a single path character satisfies this token.

        Only meaningful for tokens that consume exactly one character.
        """

        if self.type is TokenType.LITERAL:
            return char == self.char
        if self.type is TokenType.SEPARATOR:
            return char == SEPARATOR
        if char == SEPARATOR:
            return False
        if self.type is TokenType.SINGLE_WILDCARD:
            return True
        if self.type is TokenType.GROUP:
            found = char in self.characters or any(low <= char <= high for low, high in self.ranges)
            return found != self.negated
        return False


_SEPARATOR_TOKEN = Token(TokenType.SEPARATOR)
_SINGLE_TOKEN = Token(TokenType.SINGLE_WILDCARD)
_ANY_TOKEN = Token(TokenType.ANY_WILDCARD)
_ANY_DIRECTORIES_TOKEN = Token(TokenType.ANY_DIRECTORIES)


class Pattern:
    """A compiled glob pattern.

    Instances are immutable and may be shared between threads.
    """

    __slots__ = ("_pattern", "_tokens")

    def __init__(self, pattern: str, tokens: Tuple[Token, ...]):
        self._pattern = pattern
        self._tokens = tokens

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._tokens

    def match(self, path: str) -> bool:
        """Return whether ``path`` matches the whole pattern."""

        return _match(self._tokens, path)

    def glob(self, fs: FileSystem, root: str = ".") -> List[str]:
        """Return the files below ``root`` in ``fs`` that match the pattern.

        Paths are returned relative to ``root`` in traversal order.
        """

        return glob(self, fs, root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pattern):
            return NotImplemented
        return self._pattern == other._pattern

    def __hash__(self) -> int:
        return hash(self._pattern)

    def __repr__(self) -> str:
        return f"Pattern({self._pattern!r})"

    def __str__(self) -> str:
        return self._pattern


def compile(pattern: str) -> Pattern:
    """Compile ``pattern`` into a :class:`Pattern`.

    Raises:
        PatternError: if the pattern is malformed.
    """

    tokens: List[Token] = []
    length = len(pattern)
    pos = 0

    def previous() -> Optional[TokenType]:
        return tokens[-1].type if tokens else None

    while pos < length:
        char = pattern[pos]

        if char == SEPARATOR:
            if previous() is TokenType.SEPARATOR:
                raise PatternError("unexpected //", pattern=pattern, position=pos)
            tokens.append(_SEPARATOR_TOKEN)
            pos += 1

        elif char == SINGLE_WILDCARD:
            if previous() in (TokenType.ANY_WILDCARD, TokenType.ANY_DIRECTORIES):
                raise PatternError("unexpected ? after wildcard", pattern=pattern, position=pos)
            tokens.append(_SINGLE_TOKEN)
            pos += 1

        elif char == ANY_WILDCARD:
            if previous() in (TokenType.SINGLE_WILDCARD, TokenType.ANY_DIRECTORIES):
                raise PatternError("unexpected * after wildcard", pattern=pattern, position=pos)
            if pos + 1 < length and pattern[pos + 1] == ANY_WILDCARD:
                after = pos + 2
                if after < length and pattern[after] != SEPARATOR:
                    raise PatternError(
                        f"unexpected {pattern[after]!r} after **", pattern=pattern, position=after
                    )
                if previous() not in (None, TokenType.SEPARATOR):
                    raise PatternError("** must be a whole path segment", pattern=pattern, position=pos)
                tokens.append(_ANY_DIRECTORIES_TOKEN)
                pos = after
            else:
                tokens.append(_ANY_TOKEN)
                pos += 1

        elif char == ESCAPE:
            if pos + 1 >= length:
                raise PatternError("dangling escape", pattern=pattern, position=pos)
            tokens.append(Token(TokenType.LITERAL, char=pattern[pos + 1]))
            pos += 2

        elif char == GROUP_OPEN:
            token, pos = _compile_group(pattern, pos)
            tokens.append(token)

        elif char == GROUP_CLOSE:
            raise PatternError("unexpected ]", pattern=pattern, position=pos)

        else:
            tokens.append(Token(TokenType.LITERAL, char=char))
            pos += 1

    return Pattern(pattern, tuple(tokens))


def _compile_group(pattern: str, start: int) -> Tuple[Token, int]:
    """Compile the group opening at ``start``; return it and the position after ``]``."""

    length = len(pattern)
    pos = start + 1
    negated = False
    if pos < length and pattern[pos] == GROUP_NEGATE:
        negated = True
        pos += 1

    characters = set()
    ranges: List[Tuple[str, str]] = []
    # A member that may still become the low end of a range.
    pending: Optional[str] = None

    while True:
        if pos >= length:
            raise PatternError("unterminated group", pattern=pattern, position=start)

        char = pattern[pos]

        if char == GROUP_CLOSE:
            if pending is not None:
                characters.add(pending)
            if not characters and not ranges:
                raise PatternError("empty group", pattern=pattern, position=start)
            return Token(
                TokenType.GROUP,
                negated=negated,
                characters=frozenset(characters),
                ranges=tuple(ranges),
            ), pos + 1

        if char == GROUP_RANGE:
            if pending is None:
                raise PatternError("range without start", pattern=pattern, position=pos)
            high, pos = _group_member(pattern, pos + 1, start)
            if high is None:
                raise PatternError("range without end", pattern=pattern, position=pos)
            if high < pending:
                raise PatternError(f"empty range {pending}-{high}", pattern=pattern, position=pos)
            # The high end is consumed, so "a-b-c" fails on the second "-".
            ranges.append((pending, high))
            pending = None
            continue

        member, pos = _group_member(pattern, pos, start)
        if pending is not None:
            characters.add(pending)
        pending = member


def _group_member(pattern: str, pos: int, start: int) -> Tuple[Optional[str], int]:
    """Read one group member at ``pos``.

    Returns ``(None, pos)`` if the group closes or another ``-`` follows
    instead of a member.
    """

    if pos >= len(pattern):
        raise PatternError("unterminated group", pattern=pattern, position=start)
    char = pattern[pos]
    if char == ESCAPE:
        if pos + 1 >= len(pattern):
            raise PatternError("dangling escape", pattern=pattern, position=pos)
        return pattern[pos + 1], pos + 2
    if char in (GROUP_CLOSE, GROUP_RANGE):
        return None, pos
    return char, pos + 1


def _matches_empty(tokens: Tuple[Token, ...], index: int) -> bool:
    remaining = tokens[index:]
    if not remaining:
        return True
    return len(remaining) == 1 and remaining[0].type in (TokenType.ANY_WILDCARD, TokenType.ANY_DIRECTORIES)


def _match(tokens: Tuple[Token, ...], path: str) -> bool:
    token_count = len(tokens)
    path_length = len(path)
    stack: List[Tuple[int, int]] = [(0, 0)]

    while stack:
        ti, pi = stack.pop()

        while True:
            if pi == path_length:
                if _matches_empty(tokens, ti):
                    return True
                break

            if ti == token_count:
                break

            token = tokens[ti]

            if token.type is TokenType.ANY_WILDCARD:
                if path[pi] != SEPARATOR:
                    stack.append((ti, pi + 1))
                ti += 1
                continue

            if token.type is TokenType.ANY_DIRECTORIES:
                if ti + 1 == token_count:
                    return True
                boundary = path.find(SEPARATOR, pi)
                if boundary > pi:
                    stack.append((ti, boundary + 1))
                # Zero directories: skip the separator that closes the ** segment.
                ti += 2
                continue

            if not token.accepts(path[pi]):
                break
            ti += 1
            pi += 1

    return False


def match(pattern: Pattern, path: str) -> bool:
    """Return whether ``path`` matches the compiled ``pattern``."""

    return pattern.match(path)


def glob(pattern: Pattern, fs: FileSystem, root: str = ".") -> List[str]:
    """Walk ``root`` in ``fs`` and return the regular files matching ``pattern``.

    Directories are always descended into. The first traversal error stops the
    walk and is raised as :class:`~globwatch.fs.WalkError`.
    """

    results: List[str] = []
    try:
        for entry in fs.walk(root):
            if entry.error is not None:
                raise WalkError(f"failed to walk {entry.path!r}: {entry.error}", entry.path) from entry.error
            if entry.is_dir:
                continue
            if pattern.match(entry.path):
                results.append(entry.path)
    except WalkError:
        raise
    except OSError as exc:
        raise WalkError(f"failed to walk {root!r}: {exc}", root) from exc
    logger.debug("Pattern %r matched %s files below %s", pattern.pattern, len(results), root)
    return results
