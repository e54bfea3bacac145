"""Escape-sequence aware width measurement and truncation.

Styled lines carry SGR sequences of the form ``ESC [ ... m``. They take up no
columns on screen, so every measurement here works on a token stream in which
each escape sequence is a single zero-width token and each other character is
one visible column.
"""

from __future__ import annotations

from dataclasses import dataclass

ESC = "\x1b"
RESET = f"{ESC}[0m"
ELLIPSIS = "..."


@dataclass(frozen=True)
class Token:
    text: str
    escape: bool = False

    @property
    def width(self) -> int:
        return 0 if self.escape else 1


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    index = 0
    length = len(text)
    while index < length:
        if text[index] == ESC and index + 1 < length and text[index + 1] == "[":
            end = text.find("m", index + 2)
            # An unterminated sequence swallows the rest of the line.
            stop = length if end == -1 else end + 1
            tokens.append(Token(text[index:stop], escape=True))
            index = stop
            continue
        tokens.append(Token(text[index]))
        index += 1
    return tokens


def strip_ansi(text: str) -> str:
    return "".join(token.text for token in tokenize(text) if not token.escape)


def visible_width(text: str) -> int:
    return sum(token.width for token in tokenize(text))


def fit_line_to_width(line: str, width: int) -> str:
    """Truncate ``line`` to ``width`` visible columns, ending in an ellipsis.

    Escape sequences are copied whole, and a reset is appended when any were
    kept so color state does not leak into whatever is printed next.
    """
    if width <= 0:
        return ""

    tokens = tokenize(line)
    if sum(token.width for token in tokens) <= width:
        return line

    if width <= len(ELLIPSIS):
        return "." * width

    target = width - len(ELLIPSIS)
    visible = 0
    kept: list[str] = []
    has_escape = False
    for token in tokens:
        if visible >= target:
            break
        kept.append(token.text)
        if token.escape:
            has_escape = True
        else:
            visible += 1

    if has_escape:
        kept.append(RESET)
    return "".join(kept) + ELLIPSIS
