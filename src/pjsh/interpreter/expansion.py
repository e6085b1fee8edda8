"""Word Expansion.

Resolves WordNodes to values in a fixed order:
- interpolation ($var, ${var}, ${var | filters}, $(...), backtick strings)
- alias substitution (first word of a command only)
- glob expansion (unquoted words with glob characters only)

Unset variables expand to the empty string. A pattern that matches
nothing expands to no words at all.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from typing import TYPE_CHECKING, Optional

from ..ast.types import (
    DoubleQuotedPart,
    GlobPart,
    InterpolatedPart,
    LiteralPart,
    MultilineQuotedPart,
    PropertyPart,
    SingleQuotedPart,
    SpreadPart,
    SubshellPart,
    ValuePipelinePart,
    VariablePart,
    WordNode,
    WordPart,
)
from .errors import ExpansionError
from .filters import apply_filter
from .types import Value, value_to_str

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

_VALUE_PARTS = (VariablePart, PropertyPart, ValuePipelinePart, SpreadPart)


def _escape_glob_chars(s: str) -> str:
    """Escape glob metacharacters for fnmatch (literal matching).

    Uses [x] notation which fnmatch always treats as literal character class.
    """
    return "".join(f"[{c}]" if c in "*?[" else c for c in s)


# =============================================================================
# Variables
# =============================================================================


def get_variable(ctx: "InterpreterContext", name: str) -> Optional[Value]:
    """Look up a variable, including the special ``?`` and ``$``."""
    if name == "?":
        return str(ctx.state.last_exit_code)
    if name == "$":
        return str(os.getpid())
    return ctx.state.scopes.lookup(name)


def get_property(ctx: "InterpreterContext", name: str, key: str) -> Value:
    """Resolve ``${name.key}`` as an index into a list."""
    value = get_variable(ctx, name)
    if value is None:
        return ""
    if not isinstance(value, list):
        raise ExpansionError(f"{name}: cannot index a word with '.{key}'")
    if not key.isdigit():
        raise ExpansionError(f"{name}: invalid index '{key}'")
    index = int(key)
    if index >= len(value):
        raise ExpansionError(f"{name}: index {index} out of range")
    return value[index]


# =============================================================================
# Part evaluation
# =============================================================================


async def evaluate_part(ctx: "InterpreterContext", part: WordPart) -> Value:
    """Evaluate one word part to a value, before any globbing."""
    if isinstance(part, LiteralPart):
        return part.value
    if isinstance(part, GlobPart):
        return part.text
    if isinstance(part, (SingleQuotedPart, DoubleQuotedPart, MultilineQuotedPart)):
        return part.value
    if isinstance(part, (VariablePart, SpreadPart)):
        value = get_variable(ctx, part.name)
        return "" if value is None else value
    if isinstance(part, PropertyPart):
        return get_property(ctx, part.name, part.key)
    if isinstance(part, ValuePipelinePart):
        return await evaluate_value_pipeline(ctx, part)
    if isinstance(part, SubshellPart):
        stdout, _ = await ctx.capture_subshell(part.program)
        return stdout.rstrip("\n")
    if isinstance(part, InterpolatedPart):
        return await interpolate(ctx, part)
    raise ExpansionError(f"cannot expand {type(part).__name__}")


async def evaluate_value_pipeline(ctx: "InterpreterContext", part: ValuePipelinePart) -> Value:
    """Evaluate ``${base | filter args | ...}`` left to right."""
    value = await evaluate_part(ctx, part.base)
    for filter_node in part.filters:
        name = await expand_word_str(ctx, filter_node.name)
        args = [await expand_word_str(ctx, arg) for arg in filter_node.args]
        value = apply_filter(name, value, args)
    return value


async def interpolate(ctx: "InterpreterContext", part: InterpolatedPart) -> str:
    """Render a backtick string."""
    result = ""
    for unit in part.units:
        result += value_to_str(await evaluate_part(ctx, unit))
    return result


def _expand_tilde(ctx: "InterpreterContext", text: str) -> str:
    if text == "~" or text.startswith("~/"):
        home = get_variable(ctx, "HOME")
        if home:
            return value_to_str(home) + text[1:]
    return text


# =============================================================================
# Word expansion
# =============================================================================


async def expand_word_str(ctx: "InterpreterContext", word: WordNode) -> str:
    """Expand a word to exactly one string, without globbing."""
    result = ""
    for i, part in enumerate(word.parts):
        text = value_to_str(await evaluate_part(ctx, part))
        if i == 0 and isinstance(part, (LiteralPart, GlobPart)):
            text = _expand_tilde(ctx, text)
        result += text
    return result


async def expand_value(ctx: "InterpreterContext", word: WordNode) -> Value:
    """Expand a word to a value, keeping list values intact.

    A word that is exactly one variable, property, spread or filter
    pipeline keeps its kind; anything else becomes a single string.
    """
    if len(word.parts) == 1 and isinstance(word.parts[0], _VALUE_PARTS):
        value = await evaluate_part(ctx, word.parts[0])
        return list(value) if isinstance(value, list) else value
    return await expand_word_str(ctx, word)


async def expand_word(ctx: "InterpreterContext", word: WordNode, glob: bool = True) -> list[str]:
    """Expand a word to zero or more strings."""
    if word.parts and isinstance(word.parts[0], SpreadPart):
        items = await evaluate_part(ctx, word.parts[0])
        if not isinstance(items, list):
            items = [items] if items else []
        suffix = await expand_word_str(ctx, WordNode(parts=word.parts[1:]))
        return [item + suffix for item in items]

    if not (glob and word.is_globbable):
        return [await expand_word_str(ctx, word)]

    pattern = ""
    for i, part in enumerate(word.parts):
        if isinstance(part, GlobPart):
            text = part.pattern
            if i == 0 and text.startswith("~"):
                text = _escape_glob_chars(_expand_tilde(ctx, "~")) + text[1:]
            pattern += text
            continue
        text = value_to_str(await evaluate_part(ctx, part))
        if i == 0 and isinstance(part, LiteralPart):
            text = _expand_tilde(ctx, text)
        pattern += _escape_glob_chars(text)
    return glob_expand(ctx, pattern)


async def expand_words(ctx: "InterpreterContext", words: list[WordNode], glob: bool = True) -> list[str]:
    result: list[str] = []
    for word in words:
        result.extend(await expand_word(ctx, word, glob=glob))
    return result


# =============================================================================
# Aliases
# =============================================================================


def _is_aliasable(word: WordNode) -> bool:
    """Only an unquoted literal or variable command name is looked up as an alias."""
    if word.is_globbable:
        return False
    return all(isinstance(part, (LiteralPart, VariablePart)) for part in word.parts)


def substitute_aliases(
    ctx: "InterpreterContext",
    words: list[str],
    guard: Optional[set[str]] = None,
) -> list[str]:
    """Substitute an alias for the first expanded word, recursively.

    The alias value is split on whitespace and used as-is. ``guard``
    holds the names already substituted, so a self-referential alias
    such as ``alias ls = "ls -l"`` expands exactly once. A value ending
    in whitespace stops further substitution.
    """
    guard = set() if guard is None else guard
    if not words:
        return words
    name = words[0]
    if name in guard or name not in ctx.state.aliases:
        return words

    value = ctx.state.aliases[name]
    logger.debug("alias %s -> %s", name, value)
    guard.add(name)
    replacement = value.split()
    if value[-1:].isspace():
        return replacement + words[1:]
    return substitute_aliases(ctx, replacement, guard) + words[1:]


async def expand_command_words(ctx: "InterpreterContext", words: list[WordNode]) -> list[str]:
    """Expand the words of a command: interpolation, aliases, then globs."""
    if not words:
        return []
    head = await expand_word(ctx, words[0])
    if _is_aliasable(words[0]):
        head = substitute_aliases(ctx, head)
    return head + await expand_words(ctx, words[1:])


# =============================================================================
# Globbing
# =============================================================================


def glob_expand(ctx: "InterpreterContext", pattern: str) -> list[str]:
    """Expand a glob pattern against the filesystem.

    Matches are sorted by code point, so uppercase names sort before
    lowercase ones. A leading ``.`` in a name is only matched by a pattern
    component that itself starts with ``.``.
    """
    cwd = ctx.state.cwd

    # Handle absolute vs relative paths
    if pattern.startswith("/"):
        base_dir = "/"
        parts = pattern[1:].split("/")
    else:
        base_dir = cwd
        parts = pattern.split("/")

    def _should_include(entry: str, pattern_part: str) -> bool:
        return not entry.startswith(".") or pattern_part.startswith(".")

    def expand_parts(current_dir: str, display: str, remaining: list[str]) -> list[str]:
        if not remaining:
            return [display]

        part, rest = remaining[0], remaining[1:]
        if part == "":
            # Repeated or trailing slash
            return expand_parts(current_dir, display + "/" if display else "/", rest)

        if not any(c in part for c in "*?["):
            new_path = os.path.join(current_dir, part)
            if os.path.lexists(new_path):
                return expand_parts(new_path, _join_display(display, part), rest)
            return []

        try:
            entries = os.listdir(current_dir)
        except OSError:
            return []

        matches = []
        for entry in sorted(entries):
            if not _should_include(entry, part):
                continue
            if not fnmatch.fnmatchcase(entry, part):
                continue
            new_path = os.path.join(current_dir, entry)
            if rest and not os.path.isdir(new_path):
                continue
            matches.extend(expand_parts(new_path, _join_display(display, entry), rest))
        return matches

    start_display = "/" if base_dir == "/" else ""
    results = expand_parts(base_dir, start_display, parts)
    logger.debug("glob %r matched %d path(s)", pattern, len(results))
    return results


def _join_display(display: str, entry: str) -> str:
    if not display:
        return entry
    if display.endswith("/"):
        return display + entry
    return f"{display}/{entry}"

