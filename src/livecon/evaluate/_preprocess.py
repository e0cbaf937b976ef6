"""Shorthand expansion for console commands.

Rewrites the console shorthand into plain Python calls on the
environment parameter ``D``:

- ``%a = 1``   -> ``D.vars.set("a", 1)``
- ``%a += 1``  -> ``D.vars.set("a", D.vars.get("a") + (1))``
- ``%a``       -> ``D.vars.get("a")``
- ``#a/b/c``   -> ``D.node("a/b/c")``

Expansion is textual and never fails; anything malformed is reported
by the compile step.  Quoted string literals are left untouched, except
for the replacement fields of f-strings, which are expanded like any
other code.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from functools import partial

from livecon.introspect._graph import NODE_REFERENCE_RE

ENV_NAME = "D"

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# Assignment must be matched before reads, otherwise the read pattern
# would consume the ``%name`` of ``%name = ...``.
_ASSIGN_RE = re.compile(r"%([A-Za-z0-9_]+)\s*=(?!=)\s*([^;\n]*)")
_AUG_ASSIGN_RE = re.compile(
    r"%([A-Za-z0-9_]+)\s*(//|\*\*|<<|>>|[-+*/%&|^@])=\s*([^;\n]*)"
)
_READ_RE = re.compile(r"(?<!\w)%([A-Za-z0-9_]+)")

_STRING_RE = re.compile(
    r"""(?:\b(?P<prefix>[rRbBuUfF]{1,2}))?"""
    r"""(?:'''.*?'''|\"\"\".*?\"\"\"|'(?:\\.|[^'\\\n])*'|"(?:\\.|[^"\\\n])*")""",
    re.DOTALL,
)
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")


def _restore(literals: list[str], m: re.Match[str]) -> str:
    index = int(m.group(1))
    return literals[index] if index < len(literals) else m.group(0)


class CommandPreprocessor:
    """Expands console shorthand using naming conventions only."""

    def __init__(self, env_name: str = ENV_NAME, quote: str = '"') -> None:
        self.env_name = env_name
        self.quote = quote

    def expand(self, raw: str) -> str:
        masked, literals = self._mask_strings(raw)
        expanded = self._expand_assignments(masked)
        expanded = _READ_RE.sub(self._read_call, expanded)
        expanded = NODE_REFERENCE_RE.sub(self._node_call, expanded)
        return _PLACEHOLDER_RE.sub(partial(_restore, literals), expanded)

    # -----------------------------------------------------------------------
    # Rewrites
    # -----------------------------------------------------------------------

    def _expand_assignments(self, text: str) -> str:
        text = _AUG_ASSIGN_RE.sub(self._aug_assign_call, text)
        return _ASSIGN_RE.sub(self._assign_call, text)

    def _assign_call(self, m: re.Match[str]) -> str:
        # The value runs to the end of the statement and may chain: %a = %b = 1
        value = self._expand_assignments(m.group(2))
        return f'{self.env_name}.vars.set({self._name(m.group(1))}, {value})'

    def _aug_assign_call(self, m: re.Match[str]) -> str:
        name, op = m.group(1), m.group(2)
        value = self._expand_assignments(m.group(3))
        return (
            f'{self.env_name}.vars.set({self._name(name)}, '
            f'{self.env_name}.vars.get({self._name(name)}) {op} ({value}))'
        )

    def _name(self, name: str) -> str:
        return f"{self.quote}{name}{self.quote}"

    def _read_call(self, m: re.Match[str]) -> str:
        return f'{self.env_name}.vars.get({self._name(m.group(1))})'

    def _node_call(self, m: re.Match[str]) -> str:
        return f'{self.env_name}.node({self._name(m.group(1))})'

    # -----------------------------------------------------------------------
    # String literal masking
    # -----------------------------------------------------------------------

    def _mask_strings(self, text: str) -> tuple[str, list[str]]:
        literals: list[str] = []

        def _stash(m: re.Match[str]) -> str:
            literal = m.group(0)
            prefix = m.group("prefix") or ""
            if "f" in prefix.lower():
                literal = self._expand_fstring(literal, prefix)
            literals.append(literal)
            return f"\x00{len(literals) - 1}\x00"

        return _STRING_RE.sub(_stash, text), literals

    def _expand_fstring(self, literal: str, prefix: str) -> str:
        """Expand shorthand inside the replacement fields of an f-string."""
        rest = literal[len(prefix):]
        delim = rest[:3] if rest[:3] in ('"""', "'''") else rest[:1]
        body = rest[len(delim):-len(delim)]
        # Field expressions may not reuse the enclosing quote before 3.12
        inner = CommandPreprocessor(self.env_name, quote="'" if delim[0] == '"' else '"')
        fields = _rewrite_fields(body, inner.expand, raw="r" in prefix.lower())
        return f"{prefix}{delim}{fields}{delim}"


# ---------------------------------------------------------------------------
# f-string scanning
# ---------------------------------------------------------------------------

def _skip_string(text: str, start: int) -> int:
    quote = text[start] * 3 if text.startswith(text[start] * 3, start) else text[start]
    end = text.find(quote, start + len(quote))
    return len(text) if end < 0 else end + len(quote)


def _top_level_index(text: str, start: int, stops: str) -> int:
    """Index of the first of *stops* outside brackets and nested strings."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch in "'\"":
            i = _skip_string(text, i)
            continue
        if ch == "!" and text[i + 1:i + 2] == "=":
            i += 2
            continue
        if depth <= 0 and ch in stops:
            return i
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        i += 1
    return len(text)


def _rewrite_field(field: str, expand: Callable[[str], str], raw: bool) -> str:
    split = _top_level_index(field, 0, "!:")
    expression, tail = field[:split], field[split:]

    # Self-documenting ``{expr=}``: the ``=`` is not part of the expression
    debug = ""
    stripped = expression.rstrip()
    if stripped.endswith("=") and not stripped.endswith(("==", "!=", "<=", ">=")):
        debug = expression[len(stripped) - 1:]
        expression = expression[:len(stripped) - 1]

    # The format spec is literal text, apart from its own nested fields
    colon = tail.find(":")
    if colon >= 0:
        tail = tail[:colon + 1] + _rewrite_fields(tail[colon + 1:], expand, raw)
    return expand(expression) + debug + tail


def _rewrite_fields(body: str, expand: Callable[[str], str], raw: bool) -> str:
    """Run *expand* over each ``{...}`` field of an f-string body."""
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch in "{}" and body[i + 1:i + 2] == ch:
            out.append(ch * 2)
            i += 2
        elif ch == "\\" and not raw:
            # Keep escapes whole so ``\N{NAME}`` is not read as a field
            end = body.find("}", i) + 1 if body.startswith("N{", i + 1) else i + 2
            end = end or len(body)
            out.append(body[i:end])
            i = end
        elif ch == "{":
            end = _top_level_index(body, i + 1, "}")
            if end >= len(body):
                # Unterminated field: left for the compile step to report
                out.append(body[i:])
                break
            out.append("{" + _rewrite_field(body[i + 1:end], expand, raw) + "}")
            i = end + 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)
