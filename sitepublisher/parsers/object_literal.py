"""Object-literal parser.

Parses a restricted JavaScript object-literal grammar into Python data without
evaluating anything. The grammar is a superset of JSON:

- keys may be bare identifiers, single/double quoted strings or numbers
- strings may be single, double or backtick quoted (no interpolation)
- ``true``, ``false``, ``null`` and ``undefined`` (the last maps to ``None``)
- trailing commas in objects and arrays
- ``//`` line comments and ``/* */`` block comments

``parse_value_at`` parses one value starting at an offset and reports where it
ended, which lets callers lift a literal out of surrounding prose.
"""

from typing import Any

_IDENT_START = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_$")
_IDENT_CHARS = _IDENT_START | set("0123456789")
_NUMBER_CHARS = set("0123456789+-.eExXabcdefABCDEF_")

_KEYWORDS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "`": "`",
    "/": "/",
}

MAX_DEPTH = 200


class ObjectLiteralSyntaxError(ValueError):
    """Raised when text is not a valid object literal."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


class ObjectLiteralParser:
    """Recursive-descent parser over a single source string."""

    def __init__(self, text: str, completed: dict[int, tuple[Any, int]] | None = None):
        self.text = text
        self.pos = 0
        self._depth = 0
        # Every object parsed successfully, keyed by its opening brace offset
        self.completed = completed if completed is not None else {}

    def parse(self) -> Any:
        """Parse the whole text as exactly one value."""
        value = self.parse_value()
        self._skip_ignored()
        if self.pos != len(self.text):
            raise self._error("Unexpected trailing content")
        return value

    def parse_value(self) -> Any:
        self._skip_ignored()
        char = self._peek()
        if char == "":
            raise self._error("Unexpected end of input")
        if char == "{":
            return self._parse_object()
        if char == "[":
            return self._parse_array()
        if char in "\"'`":
            return self._parse_string()
        if char.isdigit() or char in "+-.":
            return self._parse_number()
        if char in _IDENT_START:
            word = self._parse_identifier()
            if word in _KEYWORDS:
                return _KEYWORDS[word]
            raise self._error(f"Unexpected identifier '{word}'", self.pos - len(word))
        raise self._error(f"Unexpected character {char!r}")

    # Structures

    def _parse_object(self) -> dict[str, Any]:
        start = self.pos
        self._enter()
        self._expect("{")
        result: dict[str, Any] = {}
        while True:
            self._skip_ignored()
            if self._peek() == "}":
                self.pos += 1
                break
            key = self._parse_key()
            self._skip_ignored()
            self._expect(":")
            result[key] = self.parse_value()
            self._skip_ignored()
            char = self._peek()
            if char == ",":
                self.pos += 1
            elif char == "}":
                self.pos += 1
                break
            else:
                raise self._error("Expected ',' or '}' in object")
        self._depth -= 1
        self.completed[start] = (result, self.pos)
        return result

    def _parse_array(self) -> list[Any]:
        self._enter()
        self._expect("[")
        result: list[Any] = []
        while True:
            self._skip_ignored()
            if self._peek() == "]":
                self.pos += 1
                break
            result.append(self.parse_value())
            self._skip_ignored()
            char = self._peek()
            if char == ",":
                self.pos += 1
            elif char == "]":
                self.pos += 1
                break
            else:
                raise self._error("Expected ',' or ']' in array")
        self._depth -= 1
        return result

    def _parse_key(self) -> str:
        char = self._peek()
        if char == "":
            raise self._error("Unexpected end of input")
        if char in "\"'`":
            return self._parse_string()
        if char in _IDENT_START:
            return self._parse_identifier()
        if char.isdigit():
            number = self._parse_number()
            return str(number)
        raise self._error("Expected property name")

    # Scalars

    def _parse_string(self) -> str:
        quote = self.text[self.pos]
        start = self.pos
        self.pos += 1
        chunks: list[str] = []
        while True:
            if self.pos >= len(self.text):
                raise self._error("Unterminated string", start)
            char = self.text[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chunks)
            if char == "\\":
                chunks.append(self._parse_escape())
                continue
            if quote == "`" and self.text.startswith("${", self.pos):
                raise self._error("Template interpolation is not supported")
            if char == "\n" and quote != "`":
                raise self._error("Unterminated string", start)
            chunks.append(char)
            self.pos += 1

    def _parse_escape(self) -> str:
        self.pos += 1
        if self.pos >= len(self.text):
            raise self._error("Unterminated escape sequence")
        char = self.text[self.pos]
        if char == "u":
            digits = self.text[self.pos + 1 : self.pos + 5]
            if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise self._error("Invalid unicode escape")
            self.pos += 5
            return chr(int(digits, 16))
        if char == "x":
            digits = self.text[self.pos + 1 : self.pos + 3]
            if len(digits) != 2 or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise self._error("Invalid hex escape")
            self.pos += 3
            return chr(int(digits, 16))
        if char == "\n":
            # Line continuation
            self.pos += 1
            return ""
        self.pos += 1
        return _ESCAPES.get(char, char)

    def _parse_number(self) -> int | float:
        start = self.pos
        is_hex = self.text[start : start + 3].lstrip("+-").lower().startswith("0x")
        while self.pos < len(self.text) and self.text[self.pos] in _NUMBER_CHARS:
            # A sign is only part of the number at the start or after an exponent
            char = self.text[self.pos]
            if char in "+-" and self.pos > start and (is_hex or self.text[self.pos - 1] not in "eE"):
                break
            self.pos += 1
        token = self.text[start : self.pos].replace("_", "")
        sign = 1
        body = token
        if body[:1] in "+-":
            sign = -1 if body[0] == "-" else 1
            body = body[1:]
        try:
            if body.lower().startswith("0x"):
                return sign * int(body[2:], 16)
            if any(c in body for c in ".eE"):
                return sign * float(body)
            return sign * int(body, 10)
        except ValueError:
            raise self._error(f"Invalid number '{token}'", start) from None

    def _parse_identifier(self) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _IDENT_CHARS:
            self.pos += 1
        return self.text[start : self.pos]

    # Helpers

    def _skip_ignored(self) -> None:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise self._error("Unterminated comment")
                self.pos = end + 2
            else:
                break

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise self._error("Maximum nesting depth exceeded")

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            raise self._error(f"Expected '{char}'")
        self.pos += 1

    def _error(self, message: str, position: int | None = None) -> ObjectLiteralSyntaxError:
        return ObjectLiteralSyntaxError(message, self.pos if position is None else position)


def parse_object_literal(text: str) -> Any:
    """Parse text that consists of exactly one object-literal value."""
    return ObjectLiteralParser(text).parse()


def parse_value_at(
    text: str,
    start: int,
    completed: dict[int, tuple[Any, int]] | None = None,
) -> tuple[Any, int]:
    """Parse one value beginning at ``start``.

    Returns the value and the offset just past it. Anything after the value is
    left untouched. When ``completed`` is given, every object that parsed
    successfully along the way is recorded in it, even if the value as a
    whole turns out to be malformed.
    """
    parser = ObjectLiteralParser(text, completed)
    parser.pos = start
    value = parser.parse_value()
    return value, parser.pos
