"""Quote-aware shell command tokenizer.

Splits a compound command into atomic sub-commands on unquoted control
operators. Everything inside quotes, backticks, command substitutions
(``$(...)``) and process substitutions (``<(...)``, ``>(...)``) is opaque
to the splitter, so ``echo "a; rm -rf /"`` stays one command. An opening
quote or paren that never closes extends to the end of the string instead
of raising.
"""

import re

from smart_approve.shell.models import TokenizeResult

_SHELL_WRAPPER = re.compile(
    r"^\s*(?:\S*/)?(?:bash|sh|zsh|dash)\s+(?:-[a-zA-Z]*c[a-zA-Z]*)\s+(?P<body>.+?)\s*$",
    re.DOTALL,
)

_DOUBLE_QUOTE_ESCAPES = re.compile(r'\\([\\"$`])')

# Openers of spans whose body runs as a separate command
_SUBSHELL_OPENERS = ("$(", "<(", ">(")


class CommandTokenizer:
    """Splits shell command strings on ``&&``, ``||``, ``;`` and ``|``.

    Unquoted newlines and a lone background ``&`` are also treated as
    separators. Redirection forms such as ``2>&1``, ``&>`` and ``>&2`` are
    left intact.
    """

    def tokenize(self, command: str) -> TokenizeResult:
        """Parse a shell command into atomic sub-commands.

        Args:
            command: The shell command string to parse.

        Returns:
            TokenizeResult with the trimmed, non-empty sub-commands and the
            operators found between them.
        """
        commands: list[str] = []
        operators: list[str] = []
        current: list[str] = []
        unterminated = False
        i = 0
        n = len(command)

        def flush() -> None:
            segment = _strip_grouping("".join(current))
            if segment:
                commands.append(segment)
            current.clear()

        while i < n:
            char = command[i]

            if char == "\\":
                current.append(command[i : i + 2])
                i += 2
                continue

            if char in ("'", '"', "`") or command.startswith(_SUBSHELL_OPENERS, i):
                end, closed = self._scan_span(command, i)
                current.append(command[i:end])
                unterminated = unterminated or not closed
                i = end
                continue

            two = command[i : i + 2]
            if two in ("&&", "||"):
                flush()
                operators.append(two)
                i += 2
                continue

            if char in (";", "\n"):
                flush()
                operators.append(";")
                i += 1
                continue

            if char == "|":
                flush()
                operators.append("|")
                # |& pipes stderr as well
                i += 2 if command[i + 1 : i + 2] == "&" else 1
                continue

            if char == "&" and self._is_background(command, i):
                flush()
                operators.append("&")
                i += 1
                continue

            current.append(char)
            i += 1

        flush()
        return TokenizeResult(
            commands=commands, operators=operators, unterminated=unterminated
        )

    def split(self, command: str) -> list[str]:
        """Split a compound command into atomic sub-commands."""
        return self.tokenize(command).commands

    def substitutions(self, segment: str) -> list[str]:
        """Return the bodies of command and process substitutions in a segment.

        Spans inside single quotes are literal text and are skipped; spans
        inside double quotes still execute and are included.
        """
        bodies: list[str] = []
        i = 0
        n = len(segment)
        in_double = False

        while i < n:
            char = segment[i]
            if char == "\\":
                i += 2
                continue
            if char == "'" and not in_double:
                end = segment.find("'", i + 1)
                i = n if end == -1 else end + 1
                continue
            if char == '"':
                in_double = not in_double
                i += 1
                continue
            if char == "`":
                end, closed = self._scan_backtick(segment, i)
                bodies.append(segment[i + 1 : end - 1 if closed else end])
                i = end
                continue
            if segment.startswith(_SUBSHELL_OPENERS, i):
                end, closed = self._scan_subshell(segment, i)
                body = segment[i + 2 : end - 1 if closed else end]
                # $((...)) is arithmetic, not a command
                if segment[i] != "$" or not body.startswith("("):
                    bodies.append(body)
                i = end
                continue
            i += 1

        return [body.strip() for body in bodies if body.strip()]

    def mask_quoted(self, text: str) -> str:
        """Replace quoted string contents with empty quotes and drop comments.

        Used before operator and flag detection so that literals like
        ``"a > b"`` are not mistaken for redirections, and ``# -n`` is not
        mistaken for a dry-run flag.
        """
        out: list[str] = []
        i = 0
        n = len(text)
        while i < n:
            char = text[i]
            if char == "\\":
                out.append(text[i : i + 2])
                i += 2
                continue
            if char in ("'", '"'):
                end, _ = self._scan_span(text, i)
                out.append(char * 2)
                i = end
                continue
            if char == "#" and (i == 0 or text[i - 1].isspace()):
                break
            out.append(char)
            i += 1
        return "".join(out)

    # Span scanners return (index just past the span, whether it closed).

    def _scan_span(self, text: str, start: int) -> tuple[int, bool]:
        char = text[start]
        if char == "'":
            end = text.find("'", start + 1)
            return (len(text), False) if end == -1 else (end + 1, True)
        if char == '"':
            return self._scan_double(text, start)
        if char == "`":
            return self._scan_backtick(text, start)
        return self._scan_subshell(text, start)

    def _scan_double(self, text: str, start: int) -> tuple[int, bool]:
        i = start + 1
        n = len(text)
        while i < n:
            char = text[i]
            if char == "\\":
                i += 2
            elif char == '"':
                return i + 1, True
            elif char == "`":
                i, closed = self._scan_backtick(text, i)
                if not closed:
                    return n, False
            elif text.startswith("$(", i):
                i, closed = self._scan_subshell(text, i)
                if not closed:
                    return n, False
            else:
                i += 1
        return n, False

    def _scan_backtick(self, text: str, start: int) -> tuple[int, bool]:
        i = start + 1
        n = len(text)
        while i < n:
            char = text[i]
            if char == "\\":
                i += 2
            elif char == "`":
                return i + 1, True
            else:
                i += 1
        return n, False

    def _scan_subshell(self, text: str, start: int) -> tuple[int, bool]:
        depth = 1
        i = start + 2
        n = len(text)
        while i < n:
            char = text[i]
            if char == "\\":
                i += 2
                continue
            if char in ("'", '"', "`"):
                i, closed = self._scan_span(text, i)
                if not closed:
                    return n, False
                continue
            if text.startswith("$(", i):
                i, closed = self._scan_subshell(text, i)
                if not closed:
                    return n, False
                continue
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return i + 1, True
            i += 1
        return n, False

    @staticmethod
    def _is_background(text: str, i: int) -> bool:
        """A lone & that is not part of a redirection (2>&1, &>, >&2, <&0)."""
        before = text[i - 1] if i > 0 else ""
        after = text[i + 1] if i + 1 < len(text) else ""
        return before not in (">", "<") and after != ">"


def _strip_grouping(segment: str) -> str:
    """Drop ( ) and { } group delimiters left around a sub-command."""
    segment = segment.strip()
    while segment[:1] in ("(", "{") and not segment.startswith("(("):
        segment = segment[1:].lstrip()
    while segment[-1:] == ")" and segment.count(")") > segment.count("("):
        segment = segment[:-1].rstrip()
    while segment[-1:] == "}" and segment.count("}") > segment.count("{"):
        segment = segment[:-1].rstrip()
    return segment


def unwrap_shell(command: str) -> str | None:
    """Return the inner command of ``bash -c '<cmd>'`` style wrappers.

    Returns None when the command is not such a wrapper.
    """
    match = _SHELL_WRAPPER.match(command)
    if not match:
        return None

    body = match.group("body")
    if len(body) >= 2 and body[0] == body[-1] == "'":
        return body[1:-1]
    if len(body) >= 2 and body[0] == body[-1] == '"':
        return _DOUBLE_QUOTE_ESCAPES.sub(r"\1", body[1:-1])
    return body
