"""Filters for ``${value | filter args | ...}`` pipelines.

Each filter declares the value kinds it accepts. A filter applied to a
kind it does not accept raises ExpansionError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .errors import ExpansionError
from .types import Value


@dataclass(frozen=True)
class Filter:
    name: str
    on_word: Optional[Callable[[str, list[str]], Value]] = None
    on_list: Optional[Callable[[list[str], list[str]], Value]] = None

    def apply(self, value: Value, args: list[str]) -> Value:
        if isinstance(value, list):
            if self.on_list is None:
                raise ExpansionError(f"filter '{self.name}' cannot be applied to a list")
            return self.on_list(value, args)
        if self.on_word is None:
            raise ExpansionError(f"filter '{self.name}' cannot be applied to a word")
        return self.on_word(value, args)


def _arity(name: str, args: list[str], *params: str) -> list[str]:
    if len(args) < len(params):
        raise ExpansionError(f"{name}: missing argument '{params[len(args)]}'")
    if len(args) > len(params):
        if not params:
            raise ExpansionError(f"{name}: takes no arguments")
        raise ExpansionError(f"{name}: too many arguments")
    return args


def _item(name: str, items: list[str], index: int) -> str:
    if index >= len(items) or index < -len(items):
        raise ExpansionError(f"{name}: no such item")
    return items[index]


def _join(items: list[str], args: list[str]) -> Value:
    (separator,) = _arity("join", args, "separator")
    return separator.join(items)


def _len(items: list[str], args: list[str]) -> Value:
    _arity("len", args)
    return str(len(items))


def _first(items: list[str], args: list[str]) -> Value:
    _arity("first", args)
    return _item("first", items, 0)


def _last(items: list[str], args: list[str]) -> Value:
    _arity("last", args)
    return _item("last", items, -1)


def _nth(items: list[str], args: list[str]) -> Value:
    (index,) = _arity("nth", args, "index")
    if not index.isdigit():
        raise ExpansionError(f"nth: invalid index: {index}")
    return _item("nth", items, int(index))


def _sort(items: list[str], args: list[str]) -> Value:
    _arity("sort", args)
    return sorted(items)


def _reverse(items: list[str], args: list[str]) -> Value:
    _arity("reverse", args)
    return list(reversed(items))


def _unique(items: list[str], args: list[str]) -> Value:
    _arity("unique", args)
    # Keeps the first occurrence of each item.
    return list(dict.fromkeys(items))


def _split(word: str, args: list[str]) -> Value:
    (separator,) = _arity("split", args, "separator")
    if not separator:
        raise ExpansionError("split: empty separator")
    return word.split(separator)


def _lines(word: str, args: list[str]) -> Value:
    _arity("lines", args)
    return word.splitlines()


def _words(word: str, args: list[str]) -> Value:
    _arity("words", args)
    return word.split()


def _lowercase(word: str, args: list[str]) -> Value:
    _arity("lowercase", args)
    return word.lower()


def _uppercase(word: str, args: list[str]) -> Value:
    _arity("uppercase", args)
    return word.upper()


def _ucfirst(word: str, args: list[str]) -> Value:
    _arity("ucfirst", args)
    return word[:1].upper() + word[1:]


def _replace_word(word: str, args: list[str]) -> Value:
    source, target = _arity("replace", args, "from", "to")
    return word.replace(source, target)


def _replace_list(items: list[str], args: list[str]) -> Value:
    source, target = _arity("replace", args, "from", "to")
    return [target if item == source else item for item in items]


FILTERS: dict[str, Filter] = {
    f.name: f
    for f in (
        Filter("join", on_list=_join),
        Filter("len", on_list=_len),
        Filter("first", on_list=_first),
        Filter("last", on_list=_last),
        Filter("nth", on_list=_nth),
        Filter("sort", on_list=_sort),
        Filter("reverse", on_list=_reverse),
        Filter("unique", on_list=_unique),
        Filter("split", on_word=_split),
        Filter("lines", on_word=_lines),
        Filter("words", on_word=_words),
        Filter("lowercase", on_word=_lowercase),
        Filter("uppercase", on_word=_uppercase),
        Filter("ucfirst", on_word=_ucfirst),
        Filter("replace", on_word=_replace_word, on_list=_replace_list),
    )
}


def apply_filter(name: str, value: Value, args: list[str]) -> Value:
    """Apply the named filter to a value."""
    try:
        filter_ = FILTERS[name]
    except KeyError:
        raise ExpansionError(f"unknown filter: {name}") from None
    return filter_.apply(value, args)
