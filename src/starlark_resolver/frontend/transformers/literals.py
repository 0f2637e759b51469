"""
Literal Parser
Decodes integer and string tokens into AST literals.

String decoding follows the Starlark lexer: unknown escapes such as "\\d"
are kept verbatim but recorded as string escape events, which only become
errors when the file is validated with incompatible_restrict_string_escapes.
"""

from dataclasses import dataclass, field
from typing import List

from lark.lexer import Token

from ...shared import Error, IntegerLiteral, SourceLocation, StringLiteral
from ...utils.config import FLAG_RESTRICT_STRING_ESCAPES

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

# Valid in Python but not supported by Starlark
_UNSUPPORTED_ESCAPES = frozenset("abfNuUvx")

_OCTAL_DIGITS = frozenset("01234567")


@dataclass
class DecodedString:
    """A decoded string token plus what went wrong while decoding it."""
    literal: StringLiteral
    escape_events: List[Error] = field(default_factory=list)
    errors: List[Error] = field(default_factory=list)


def _offset_location(token: Token, source_file: str, offset: int) -> SourceLocation:
    """Location of the character `offset` positions into the token."""
    text = str(token)[:offset]
    newlines = text.count("\n")
    if newlines:
        column = offset - text.rfind("\n")
    else:
        column = token.column + offset
    return SourceLocation(file=source_file, line=token.line + newlines, column=column)


def _token_location(token: Token, source_file: str) -> SourceLocation:
    return SourceLocation(
        file=source_file,
        line=token.line,
        column=token.column,
        end_line=token.end_line or token.line,
        end_column=token.end_column or token.column,
    )


class LiteralParser:
    """Parses NUMBER and STRING tokens"""

    def __init__(self, source_file: str):
        self.source_file = source_file

    def parse_integer(self, token: Token) -> IntegerLiteral:
        text = str(token).lower()
        if text.startswith("0o"):
            value = int(text[2:], 8)
        elif text.startswith("0x"):
            value = int(text[2:], 16)
        else:
            value = int(text)
        return IntegerLiteral(value, _token_location(token, self.source_file))

    def parse_string(self, token: Token) -> DecodedString:
        text = str(token)
        raw = text[0] in "rR"
        prefix = 1 if raw else 0
        quote_len = 3 if text[prefix:prefix + 3] in ('"""', "'''") else 1
        start = prefix + quote_len
        body = text[start:len(text) - quote_len]

        location = _token_location(token, self.source_file)
        if raw:
            return DecodedString(StringLiteral(body, location))
        return self._unescape(body, token, start, location)

    def _unescape(self, body: str, token: Token, base: int, location: SourceLocation) -> DecodedString:
        result = DecodedString(StringLiteral("", location))
        out: List[str] = []
        i = 0
        n = len(body)
        while i < n:
            c = body[i]
            if c != "\\" or i + 1 >= n:
                out.append(c)
                i += 1
                continue
            nxt = body[i + 1]
            if nxt == "\n":
                i += 2
            elif nxt in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[nxt])
                i += 2
            elif nxt in _OCTAL_DIGITS:
                j = i + 1
                while j < n and j < i + 4 and body[j] in _OCTAL_DIGITS:
                    j += 1
                out.append(chr(int(body[i + 1:j], 8)))
                i = j
            elif nxt in _UNSUPPORTED_ESCAPES:
                result.errors.append(Error(
                    message=f"escape sequence not implemented: \\{nxt}",
                    location=_offset_location(token, self.source_file, base + i),
                ))
                out.append("\\" + nxt)
                i += 2
            else:
                result.escape_events.append(Error(
                    message=(
                        f"invalid escape sequence: \\{nxt}. You can enable unknown escape "
                        f"sequences by passing the flag --{FLAG_RESTRICT_STRING_ESCAPES}=false"
                    ),
                    location=_offset_location(token, self.source_file, base + i),
                ))
                out.append("\\" + nxt)
                i += 2
        result.literal.value = "".join(out)
        return result
