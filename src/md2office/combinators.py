"""Small parser-combinator toolkit used by the inline Markdown parser.

A parser is any callable ``(text, pos) -> (value, new_pos) | None``.
``None`` means failure with nothing consumed, so the caller is free to try
the next alternative at the same position.  Parsers never raise on bad
input.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Optional, Pattern, Tuple, Union

Result = Optional[Tuple[Any, int]]
Parser = Callable[[str, int], Result]

#: Hard cap on iterations of :func:`many`.  Guarantees termination even if a
#: sub-parser succeeds without consuming input.
MAX_REPEAT = 1000


def literal(token: str) -> Parser:
    """Match *token* exactly."""

    def parse(text: str, pos: int) -> Result:
        if text.startswith(token, pos):
            return token, pos + len(token)
        return None

    return parse


def regex(pattern: Union[str, Pattern[str]], group: int = 0) -> Parser:
    """Match *pattern* anchored at the current position.

    The value is the match object when *group* is ``None``, otherwise the
    text of *group*.
    """
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def parse(text: str, pos: int) -> Result:
        m = compiled.match(text, pos)
        if m is None:
            return None
        return (m if group is None else m.group(group)), m.end()

    return parse


def seq(*parsers: Parser) -> Parser:
    """Run *parsers* one after another; the value is a tuple of results."""

    def parse(text: str, pos: int) -> Result:
        values = []
        for p in parsers:
            res = p(text, pos)
            if res is None:
                return None
            value, pos = res
            values.append(value)
        return tuple(values), pos

    return parse


def alt(*parsers: Parser) -> Parser:
    """Ordered choice: the first parser that succeeds wins."""

    def parse(text: str, pos: int) -> Result:
        for p in parsers:
            res = p(text, pos)
            if res is not None:
                return res
        return None

    return parse


def many(parser: Parser, limit: int = MAX_REPEAT) -> Parser:
    """Zero or more repetitions of *parser*, at most *limit* times.

    Stops early when *parser* fails or stops consuming input.  Always
    succeeds.
    """

    def parse(text: str, pos: int) -> Result:
        values = []
        for _ in range(limit):
            res = parser(text, pos)
            if res is None:
                break
            value, new_pos = res
            values.append(value)
            if new_pos == pos:
                break
            pos = new_pos
        return values, pos

    return parse


def lazy(thunk: Callable[[], Parser]) -> Parser:
    """Defer building a parser until it is first called.

    Lets a grammar refer to rules that are defined later, including itself.
    """
    cache: list[Parser] = []

    def parse(text: str, pos: int) -> Result:
        if not cache:
            cache.append(thunk())
        return cache[0](text, pos)

    return parse


def fmap(parser: Parser, fn: Callable[[Any], Any]) -> Parser:
    """Transform the value of a successful parse with *fn*."""

    def parse(text: str, pos: int) -> Result:
        res = parser(text, pos)
        if res is None:
            return None
        value, pos = res
        return fn(value), pos

    return parse


def between(open_: Parser, body: Parser, close: Parser) -> Parser:
    """Parse ``open_ body close`` and keep only the body's value."""
    return fmap(seq(open_, body, close), lambda values: values[1])


def take_while(predicate: Callable[[str], bool], min_count: int = 1) -> Parser:
    """Consume the longest prefix of characters satisfying *predicate*."""

    def parse(text: str, pos: int) -> Result:
        end = pos
        while end < len(text) and predicate(text[end]):
            end += 1
        if end - pos < min_count:
            return None
        return text[pos:end], end

    return parse


def any_char(text: str, pos: int) -> Result:
    """Consume one character of any kind."""
    if pos < len(text):
        return text[pos], pos + 1
    return None
