import re
from decimal import Decimal
from typing import Tuple, Union

from lark import Token

from evmcl.nodes import Span

TIME_UNITS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
    "mo": 60 * 60 * 24 * 30,
    "y": 60 * 60 * 24 * 365,
}

_NUMBER_RE = re.compile(r"^(-?\d+(?:\.\d+)?)(?:e(\d+))?(mo|s|m|h|d|w|y)?$")
_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "'": "'"}


def _parse_number_literal(text: str) -> Union[int, Decimal]:
    match = _NUMBER_RE.match(text)
    if match is None:
        raise ValueError(f"Invalid number literal: {text}")
    base, exponent, unit = match.groups()
    value = Decimal(base)
    if exponent:
        value = value.scaleb(int(exponent))
    if unit:
        value *= TIME_UNITS[unit]
    if value == value.to_integral_value():
        return int(value)
    return value


def _unquote_string(text: str) -> str:
    body = text[1:-1]
    if "\\" not in body:
        return body
    out = []
    chars = iter(body)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        escaped = next(chars, "")
        out.append(_ESCAPES.get(escaped, escaped))
    return "".join(out)


def _split_command_name(text: str) -> Tuple[Union[str, None], str]:
    module, sep, name = text.partition(":")
    if not sep:
        return None, text
    return module, name


def _token_span(token: Token) -> Span:
    line, column = token.line or 1, token.column or 1
    return Span(
        start_line=line,
        start_col=column - 1,
        end_line=token.end_line or line,
        end_col=(token.end_column or column) - 1,
    )


def _meta_span(meta) -> Union[Span, None]:
    if getattr(meta, "empty", True):
        return None
    # Tokens synthesized during error recovery may lack an end position.
    end_line = getattr(meta, "end_line", None) or meta.line
    end_column = getattr(meta, "end_column", None) or meta.column
    return Span(
        start_line=meta.line,
        start_col=meta.column - 1,
        end_line=end_line,
        end_col=end_column - 1,
    )


__all__ = [
    "TIME_UNITS",
    "_parse_number_literal",
    "_unquote_string",
    "_split_command_name",
    "_token_span",
    "_meta_span",
]
