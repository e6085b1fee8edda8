"""AST node types for pjsh.

A program is a list of statements. Words are kept unexpanded in the tree
(``WordNode``) and only resolved to values at execution time, since their
values depend on the active scope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..parser.cursor import Position


# =============================================================================
# Word parts
# =============================================================================


@dataclass
class LiteralPart:
    """Unquoted text without glob characters."""

    value: str


@dataclass
class GlobPart:
    """Unquoted text containing glob characters.

    ``pattern`` has escaped metacharacters wrapped in brackets so it can be
    handed to fnmatch; ``text`` is the literal spelling used wherever
    globbing does not apply.
    """

    pattern: str
    text: str


@dataclass
class SingleQuotedPart:
    value: str


@dataclass
class DoubleQuotedPart:
    value: str


@dataclass
class MultilineQuotedPart:
    """A triple-quoted string, already dedented."""

    value: str


@dataclass
class VariablePart:
    name: str


@dataclass
class PropertyPart:
    """``${name.key}``: item ``key`` of the list bound to ``name``."""

    name: str
    key: str


@dataclass
class SpreadPart:
    """``...$name``: each list item becomes its own word."""

    name: str


@dataclass
class FilterNode:
    name: WordNode
    args: list[WordNode] = field(default_factory=list)


@dataclass
class ValuePipelinePart:
    """``${base | filter args | ...}``."""

    base: Union[VariablePart, PropertyPart]
    filters: list[FilterNode] = field(default_factory=list)


@dataclass
class SubshellPart:
    """``$( ... )``: captured standard output of a program."""

    program: ProgramNode


@dataclass
class InterpolatedPart:
    """A backtick string. Units are literal text and expansions."""

    units: list[Union[
        LiteralPart, VariablePart, PropertyPart, ValuePipelinePart, SubshellPart
    ]] = field(default_factory=list)


WordPart = Union[
    LiteralPart,
    GlobPart,
    SingleQuotedPart,
    DoubleQuotedPart,
    MultilineQuotedPart,
    VariablePart,
    PropertyPart,
    SpreadPart,
    ValuePipelinePart,
    SubshellPart,
    InterpolatedPart,
]

QUOTED_PARTS = (SingleQuotedPart, DoubleQuotedPart, MultilineQuotedPart)


@dataclass
class WordNode:
    """One word: one or more adjacent parts."""

    parts: list[WordPart] = field(default_factory=list)
    position: Optional[Position] = None

    @property
    def is_globbable(self) -> bool:
        return any(isinstance(p, GlobPart) for p in self.parts)

    def literal_text(self) -> Optional[str]:
        """Return the text of a word made only of unquoted literals."""
        text = ""
        for part in self.parts:
            if isinstance(part, LiteralPart):
                text += part.value
            elif isinstance(part, GlobPart):
                text += part.text
            else:
                return None
        return text


@dataclass
class ListNode:
    """``[ word ... ]``."""

    items: list[WordNode] = field(default_factory=list)


# =============================================================================
# Commands and pipelines
# =============================================================================


@dataclass
class RedirectNode:
    """A redirection attached to a pipeline segment.

    ``mode`` is one of ``in``, ``out``, ``append`` or ``dup``. For ``dup``
    the target is a descriptor number, otherwise a path word.
    """

    fd: int
    mode: str
    target: Union[WordNode, int]


@dataclass
class CommandNode:
    words: list[WordNode] = field(default_factory=list)
    redirects: list[RedirectNode] = field(default_factory=list)
    position: Optional[Position] = None


@dataclass
class ConditionNode:
    """``[[ ... ]]``. ``op`` is one of the unary tests, ``==`` or ``!=``."""

    op: str
    args: list[WordNode] = field(default_factory=list)
    negated: bool = False


@dataclass
class SubshellNode:
    """``( program )`` as a pipeline segment."""

    program: ProgramNode
    redirects: list[RedirectNode] = field(default_factory=list)


SegmentNode = Union[CommandNode, ConditionNode, SubshellNode]


@dataclass
class PipelineNode:
    segments: list[SegmentNode] = field(default_factory=list)
    smart: bool = False


@dataclass
class StatementNode:
    """An and/or chain of pipelines. ``operators[i]`` joins i and i+1."""

    pipelines: list[PipelineNode] = field(default_factory=list)
    operators: list[str] = field(default_factory=list)


# =============================================================================
# Statements
# =============================================================================


@dataclass
class BlockNode:
    statements: list[Node] = field(default_factory=list)


@dataclass
class AssignmentNode:
    """``key := value`` or, when value is a pipeline, ``key ::= pipeline``."""

    key: WordNode
    value: Union[WordNode, ListNode, PipelineNode]

    @property
    def captures_output(self) -> bool:
        return isinstance(self.value, PipelineNode)


@dataclass
class IfNode:
    conditions: list[StatementNode] = field(default_factory=list)
    branches: list[BlockNode] = field(default_factory=list)
    else_branch: Optional[BlockNode] = None


@dataclass
class SwitchCaseNode:
    keys: list[WordNode]
    body: BlockNode


@dataclass
class SwitchNode:
    subject: WordNode
    cases: list[SwitchCaseNode] = field(default_factory=list)
    default: Optional[BlockNode] = None


@dataclass
class WhileNode:
    condition: StatementNode
    body: BlockNode


@dataclass
class UntilNode:
    condition: StatementNode
    body: BlockNode


@dataclass
class RangeNode:
    """Numeric range. ``end`` is exclusive in the direction of travel."""

    start: int
    end: int

    def values(self) -> list[str]:
        step = 1 if self.end >= self.start else -1
        return [str(i) for i in range(self.start, self.end, step)]


@dataclass
class ForInNode:
    variable: str
    iterable: Union[RangeNode, ListNode, WordNode]
    body: BlockNode


@dataclass
class ForInOfNode:
    """``for x in chars|lines|words of word { ... }``."""

    variable: str
    rule: str
    word: WordNode
    body: BlockNode


@dataclass
class FunctionDefNode:
    name: str
    params: list[str] = field(default_factory=list)
    list_param: Optional[str] = None
    body: BlockNode = field(default_factory=BlockNode)


Node = Union[
    StatementNode,
    AssignmentNode,
    IfNode,
    SwitchNode,
    WhileNode,
    UntilNode,
    ForInNode,
    ForInOfNode,
    FunctionDefNode,
]


@dataclass
class ProgramNode:
    statements: list[Node] = field(default_factory=list)
