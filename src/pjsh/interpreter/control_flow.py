"""Control Flow Execution.

Handles control flow constructs:
- if / else if / else
- switch with a default branch
- while and until loops
- for loops over ranges, lists and values
- for loops over the chars, lines or words of a word

Conditions are ordinary statements; exit code 0 is true. Each construct
returns the exit code of the last command it executed, or 0 if its body
never ran.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..ast.types import (
    BlockNode,
    ForInNode,
    ForInOfNode,
    IfNode,
    ListNode,
    RangeNode,
    SwitchNode,
    UntilNode,
    WhileNode,
)
from .expansion import expand_value, expand_word, expand_word_str, expand_words
from .types import ITERATION

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)


async def execute_block(ctx: "InterpreterContext", block: BlockNode) -> int:
    """Execute the statements of a block in the current scope."""
    exit_code = 0
    for statement in block.statements:
        exit_code = await ctx.execute_statement(statement)
    return exit_code


async def execute_if(ctx: "InterpreterContext", node: IfNode) -> int:
    """Execute an if statement."""
    for condition, branch in zip(node.conditions, node.branches):
        if await ctx.execute_statement(condition) == 0:
            return await execute_block(ctx, branch)

    # No condition matched - check for else
    if node.else_branch is not None:
        return await execute_block(ctx, node.else_branch)
    return 0


async def execute_switch(ctx: "InterpreterContext", node: SwitchNode) -> int:
    """Execute a switch statement.

    Keys are compared to the subject by exact string equality, in source
    order. The first matching case wins.
    """
    subject = await expand_word_str(ctx, node.subject)
    for case in node.cases:
        for key in case.keys:
            if await expand_word_str(ctx, key) == subject:
                return await execute_block(ctx, case.body)

    if node.default is not None:
        return await execute_block(ctx, node.default)
    return 0


async def execute_while(ctx: "InterpreterContext", node: WhileNode) -> int:
    """Execute a while loop."""
    exit_code = 0
    while await ctx.execute_statement(node.condition) == 0:
        exit_code = await execute_block(ctx, node.body)
    return exit_code


async def execute_until(ctx: "InterpreterContext", node: UntilNode) -> int:
    """Execute an until loop."""
    exit_code = 0
    while await ctx.execute_statement(node.condition) != 0:
        exit_code = await execute_block(ctx, node.body)
    return exit_code


async def _iterate(ctx: "InterpreterContext", variable: str, items: list[str], body: BlockNode) -> int:
    """Run ``body`` once per item, each time in a fresh iteration scope."""
    exit_code = 0
    scopes = ctx.state.scopes
    for item in items:
        scopes.push_scope(ITERATION)
        try:
            scopes.set_local(variable, item)
            exit_code = await execute_block(ctx, body)
        finally:
            scopes.pop_scope()
    return exit_code


async def execute_for_in(ctx: "InterpreterContext", node: ForInNode) -> int:
    """Execute a for loop over a range, a list literal or a value."""
    iterable = node.iterable
    if isinstance(iterable, RangeNode):
        items = iterable.values()
    elif isinstance(iterable, ListNode):
        items = await expand_words(ctx, iterable.items)
    elif iterable.is_globbable:
        items = await expand_word(ctx, iterable)
    else:
        value = await expand_value(ctx, iterable)
        if isinstance(value, list):
            items = value
        else:
            items = [value] if value else []

    logger.debug("for %s: %d item(s)", node.variable, len(items))
    return await _iterate(ctx, node.variable, items, node.body)


async def execute_for_in_of(ctx: "InterpreterContext", node: ForInOfNode) -> int:
    """Execute ``for x in chars|lines|words of word``."""
    text = await expand_word_str(ctx, node.word)
    if node.rule == "chars":
        items = list(text)
    elif node.rule == "lines":
        items = text.splitlines()
    else:
        items = text.split()
    return await _iterate(ctx, node.variable, items, node.body)
