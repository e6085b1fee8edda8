"""Recursive-descent parser for pjsh.

Grammar (informal):

    program     := (statement (NEWLINE | ';'))*
    statement   := if | switch | while | until | for | fn | assignment | and_or
    and_or      := pipeline (('&&' | '||') pipeline)*
    pipeline    := '->|' segment ('|' segment)* ';'
                 | segment ('|' NEWLINE? segment)*
    segment     := '[[' condition ']]' | '(' program ')' redirect* | command
    command     := redirect* word (word | redirect)*

The first error aborts parsing; there is no recovery.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from ..ast.types import (
    AssignmentNode,
    BlockNode,
    CommandNode,
    ConditionNode,
    DoubleQuotedPart,
    FilterNode,
    ForInNode,
    ForInOfNode,
    FunctionDefNode,
    GlobPart,
    IfNode,
    InterpolatedPart,
    ListNode,
    LiteralPart,
    MultilineQuotedPart,
    Node,
    PipelineNode,
    ProgramNode,
    PropertyPart,
    RangeNode,
    RedirectNode,
    SingleQuotedPart,
    SpreadPart,
    StatementNode,
    SubshellNode,
    SubshellPart,
    SwitchCaseNode,
    SwitchNode,
    UntilNode,
    ValuePipelinePart,
    VariablePart,
    WhileNode,
    WordNode,
    WordPart,
)
from .cursor import Position
from .errors import ParseError
from .lexer import WORD_TOKENS, Token, TokenType, is_valid_name, lex_interpolation, tokenize

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^(-?\d+)\.\.(=?)(-?\d+)$")

UNARY_TESTS = {
    "-n": "-n",
    "-z": "-z",
    "-d": "-d",
    "is-dir": "-d",
    "-f": "-f",
    "is-file": "-f",
    "-e": "-e",
    "is-path": "-e",
}

ITERATION_RULES = ("chars", "lines", "words")


def parse_range(text: str) -> Optional[RangeNode]:
    """Parse ``a..b`` (exclusive) or ``a..=b`` (inclusive)."""
    match = _RANGE_RE.match(text)
    if not match:
        return None
    start, inclusive, end = int(match.group(1)), match.group(2) == "=", int(match.group(3))
    if inclusive:
        end = end - 1 if start > end else end + 1
    return RangeNode(start, end)


class Parser:
    """Parses a token sequence into a ProgramNode."""

    def __init__(self, tokens: list[Token], nested: bool = False):
        if not tokens or tokens[-1].type is not TokenType.EOF:
            raise ValueError("token sequence must end with EOF")
        self.tokens = tokens
        self.pos = 0
        self.nested = nested
        self._smart = False

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def next(self) -> Token:
        token = self.peek()
        if token.type is not TokenType.EOF:
            self.pos += 1
        return token

    def at(self, *types: TokenType) -> bool:
        return self.peek().type in types

    def at_keyword(self, word: str) -> bool:
        token = self.peek()
        return token.type is TokenType.KEYWORD and token.value == word

    def error(self, expected: str, token: Optional[Token] = None) -> ParseError:
        token = token or self.peek()
        at_eof = token.type is TokenType.EOF
        return ParseError(
            token.position,
            expected,
            None if at_eof else token.text,
            incomplete=at_eof and not self.nested,
        )

    def expect(self, type_: TokenType, expected: str) -> Token:
        if not self.at(type_):
            raise self.error(expected)
        return self.next()

    def expect_keyword(self, word: str) -> Token:
        if not self.at_keyword(word):
            raise self.error(f"'{word}'")
        return self.next()

    def skip_newlines(self) -> None:
        while self.at(TokenType.NEWLINE):
            self.next()

    def _skip_smart_newlines(self) -> None:
        if self._smart:
            self.skip_newlines()

    # ------------------------------------------------------------------
    # Program and statements
    # ------------------------------------------------------------------

    def parse_program(self, end: Optional[TokenType] = None) -> ProgramNode:
        program = ProgramNode()
        stop = {TokenType.EOF} if end is None else {TokenType.EOF, end}
        while True:
            while self.at(TokenType.NEWLINE, TokenType.SEMI):
                self.next()
            if self.peek().type in stop:
                break
            program.statements.append(self.parse_statement())
            if self.at(TokenType.NEWLINE, TokenType.SEMI):
                continue
            if self.peek().type not in stop:
                raise self.error("end of statement")
        if end is not None:
            self.expect(end, f"'{_closing_text(end)}'")
        return program

    def parse_statement(self) -> Node:
        token = self.peek()
        if token.type is TokenType.KEYWORD:
            handler = {
                "if": self.parse_if,
                "switch": self.parse_switch,
                "while": self.parse_while,
                "until": self.parse_until,
                "for": self.parse_for,
                "fn": self.parse_function,
            }.get(token.value)
            if handler is not None:
                return handler()

        assignment = self.try_parse_assignment()
        if assignment is not None:
            return assignment
        return self.parse_and_or()

    def try_parse_assignment(self) -> Optional[AssignmentNode]:
        start = self.pos
        key = self.parse_word()
        if key is None or not self.at(TokenType.ASSIGN, TokenType.ASSIGN_RESULT):
            self.pos = start
            return None

        if self.next().type is TokenType.ASSIGN_RESULT:
            return AssignmentNode(key=key, value=self.parse_pipeline())

        if self.at(TokenType.LBRACKET):
            return AssignmentNode(key=key, value=self.parse_list())
        value = self.parse_word()
        if value is None:
            raise self.error("a value or list")
        return AssignmentNode(key=key, value=value)

    def parse_block(self) -> BlockNode:
        self.expect(TokenType.LBRACE, "'{'")
        program = self.parse_program(end=TokenType.RBRACE)
        return BlockNode(statements=program.statements)

    def parse_if(self) -> IfNode:
        self.expect_keyword("if")
        node = IfNode()
        node.conditions.append(self.parse_and_or())
        node.branches.append(self.parse_block())

        while True:
            start = self.pos
            self.skip_newlines()
            if not self.at_keyword("else"):
                self.pos = start
                break
            self.next()
            if self.at_keyword("if"):
                self.next()
                node.conditions.append(self.parse_and_or())
                node.branches.append(self.parse_block())
                continue
            node.else_branch = self.parse_block()
            break
        return node

    def parse_switch(self) -> SwitchNode:
        self.expect_keyword("switch")
        subject = self.parse_word()
        if subject is None:
            raise self.error("a word to switch on")
        node = SwitchNode(subject=subject)

        self.expect(TokenType.LBRACE, "'{'")
        while True:
            while self.at(TokenType.NEWLINE, TokenType.SEMI):
                self.next()
            if self.at(TokenType.RBRACE):
                self.next()
                break

            keys: list[WordNode] = []
            while (word := self.parse_word()) is not None:
                keys.append(word)
            if not keys:
                raise self.error("a switch key")
            body = self.parse_block()

            regular = [k for k in keys if k.literal_text() != "default"]
            if len(regular) != len(keys):
                node.default = body
            if regular:
                node.cases.append(SwitchCaseNode(keys=regular, body=body))
        return node

    def parse_while(self) -> WhileNode:
        self.expect_keyword("while")
        condition = self.parse_and_or()
        return WhileNode(condition=condition, body=self.parse_block())

    def parse_until(self) -> UntilNode:
        self.expect_keyword("until")
        condition = self.parse_and_or()
        return UntilNode(condition=condition, body=self.parse_block())

    def parse_for(self) -> Union[ForInNode, ForInOfNode]:
        self.expect_keyword("for")
        variable_token = self.peek()
        variable_word = self.parse_word()
        variable = variable_word.literal_text() if variable_word else None
        if variable is None or not is_valid_name(variable):
            raise self.error("a loop variable name", variable_token)
        self.expect_keyword("in")

        rule_token = self.peek()
        if (
            rule_token.type is TokenType.LITERAL
            and rule_token.value[0] in ITERATION_RULES
            and self.peek(1).type is TokenType.KEYWORD
            and self.peek(1).value == "of"
        ):
            self.pos += 2
            word = self.parse_word()
            if word is None:
                raise self.error("a word to iterate over")
            return ForInOfNode(
                variable=variable,
                rule=rule_token.value[0],
                word=word,
                body=self.parse_block(),
            )

        iterable: Union[RangeNode, ListNode, WordNode]
        if self.at(TokenType.LBRACKET):
            iterable = self.parse_list()
        else:
            word_token = self.peek()
            word = self.parse_word()
            if word is None:
                raise self.error("an iterable")
            text = None if word.is_globbable else word.literal_text()
            if text is not None:
                range_node = parse_range(text)
                if range_node is None:
                    raise self.error("a range such as 1..=3", word_token)
                iterable = range_node
            else:
                iterable = word
        return ForInNode(variable=variable, iterable=iterable, body=self.parse_block())

    def parse_function(self) -> FunctionDefNode:
        self.expect_keyword("fn")
        name_token = self.peek()
        name_word = self.parse_word()
        name = name_word.literal_text() if name_word else None
        if not name:
            raise self.error("a function name", name_token)

        self.expect(TokenType.LPAREN, "'('")
        node = FunctionDefNode(name=name)
        while self.at(TokenType.LITERAL, TokenType.KEYWORD):
            token = self.next()
            param = token.value if token.type is TokenType.KEYWORD else token.value[0]
            if param.endswith("..."):
                node.list_param = param[:-3]
                if not is_valid_name(node.list_param):
                    raise self.error("a parameter name", token)
                break
            if not is_valid_name(param):
                raise self.error("a parameter name", token)
            node.params.append(param)
        self.expect(TokenType.RPAREN, "')'")
        node.body = self.parse_block()
        return node

    # ------------------------------------------------------------------
    # And/or chains and pipelines
    # ------------------------------------------------------------------

    def parse_and_or(self) -> StatementNode:
        node = StatementNode(pipelines=[self.parse_pipeline()])
        while self.at(TokenType.AND_IF, TokenType.OR_IF):
            node.operators.append(self.next().text)
            self.skip_newlines()
            node.pipelines.append(self.parse_pipeline())
        return node

    def parse_pipeline(self) -> PipelineNode:
        if self.at(TokenType.PIPE_START):
            self.next()
            return self._parse_smart_pipeline()

        pipeline = PipelineNode(segments=[self.parse_segment()])
        while self.at(TokenType.PIPE):
            self.next()
            if self.at(TokenType.NEWLINE):
                self.next()
            pipeline.segments.append(self.parse_segment())
        if self.at(TokenType.AMP):
            raise self.error("end of pipeline (background jobs are not supported)")
        return pipeline

    def _parse_smart_pipeline(self) -> PipelineNode:
        saved, self._smart = self._smart, True
        try:
            pipeline = PipelineNode(smart=True)
            while True:
                self.skip_newlines()
                pipeline.segments.append(self.parse_segment())
                self.skip_newlines()
                if self.at(TokenType.PIPE):
                    self.next()
                    continue
                if self.at(TokenType.SEMI):
                    self.next()
                    return pipeline
                if self.at(TokenType.AMP):
                    raise self.error("';' (background jobs are not supported)")
                raise self.error("'|' or ';'")
        finally:
            self._smart = saved

    def parse_segment(self) -> Union[CommandNode, ConditionNode, SubshellNode]:
        if self.at(TokenType.DLBRACKET):
            return self.parse_condition()
        if self.at(TokenType.LPAREN):
            self.next()
            program = self.parse_program(end=TokenType.RPAREN)
            node = SubshellNode(program=program)
            while self.at(TokenType.REDIRECT):
                node.redirects.append(self.parse_redirect())
            return node
        return self.parse_command()

    def parse_command(self) -> CommandNode:
        node = CommandNode(position=self.peek().position)
        while self.at(TokenType.REDIRECT):
            node.redirects.append(self.parse_redirect())

        while True:
            self._skip_smart_newlines()
            if self.at(TokenType.REDIRECT):
                node.redirects.append(self.parse_redirect())
                continue
            word = self.parse_word()
            if word is None:
                break
            node.words.append(word)

        if not node.words:
            raise self.error("a command")
        return node

    def parse_redirect(self) -> RedirectNode:
        token = self.expect(TokenType.REDIRECT, "a redirection")
        fd, mode, target = token.value
        if fd > 2 or (mode == "dup" and target > 2):
            raise self.error("a file descriptor between 0 and 2", token)
        if mode == "dup":
            return RedirectNode(fd=fd, mode=mode, target=target)
        self._skip_smart_newlines()
        path = self.parse_word()
        if path is None:
            raise self.error("a redirection target")
        return RedirectNode(fd=fd, mode=mode, target=path)

    def parse_condition(self) -> ConditionNode:
        self.expect(TokenType.DLBRACKET, "'[['")
        negated = False
        if self.peek().type is TokenType.LITERAL and self.peek().value[0] == "!":
            self.next()
            negated = True

        first = self.parse_word()
        if first is None:
            raise self.error("a condition")
        first_text = first.literal_text()

        if first_text in UNARY_TESTS and not self.at(TokenType.DRBRACKET):
            operand = self.parse_word()
            if operand is None:
                raise self.error("an operand")
            node = ConditionNode(op=UNARY_TESTS[first_text], args=[operand])
        elif self.peek().type is TokenType.LITERAL and self.peek().value[0] in ("==", "!="):
            op = self.next().value[0]
            second = self.parse_word()
            if second is None:
                raise self.error("an operand")
            node = ConditionNode(op=op, args=[first, second])
        else:
            node = ConditionNode(op="-n", args=[first])

        self.expect(TokenType.DRBRACKET, "']]'")
        node.negated = negated
        return node

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------

    def parse_list(self) -> ListNode:
        self.expect(TokenType.LBRACKET, "'['")
        node = ListNode()
        while True:
            self.skip_newlines()
            if self.at(TokenType.RBRACKET):
                self.next()
                return node
            word = self.parse_word()
            if word is None:
                raise self.error("a list item or ']'")
            node.items.append(word)

    def parse_word(self) -> Optional[WordNode]:
        """Parse one word made of adjacent word tokens, if one is next."""
        if self.peek().type not in WORD_TOKENS:
            return None
        first = self.next()
        word = WordNode(parts=[self._to_part(first)], position=first.position)
        while self.peek().type in WORD_TOKENS and not self.peek().spaced:
            word.parts.append(self._to_part(self.next()))
        return word

    def _to_part(self, token: Token) -> WordPart:
        t = token.type
        if t is TokenType.LITERAL:
            text, pattern = token.value
            if pattern is not None:
                return GlobPart(pattern=pattern, text=text)
            return LiteralPart(text)
        if t is TokenType.KEYWORD:
            return LiteralPart(token.value)
        if t is TokenType.QUOTED:
            if token.quote == "'":
                return SingleQuotedPart(token.value)
            return DoubleQuotedPart(token.value)
        if t is TokenType.MULTILINE:
            return MultilineQuotedPart(token.value)
        if t is TokenType.SPREAD:
            return SpreadPart(token.value)
        if t is TokenType.INTERPOLATED:
            units = []
            for unit in token.value:
                if isinstance(unit, str):
                    units.append(LiteralPart(unit))
                else:
                    units.append(self._to_part(unit))
            return InterpolatedPart(units=units)
        if t is TokenType.VARIABLE:
            return VariablePart(token.value)
        if t is TokenType.SUBSHELL:
            return SubshellPart(program=Parser(token.value, nested=True).parse_program())
        if t is TokenType.VALUE_PIPELINE:
            return Parser(token.value, nested=True).parse_value_pipeline(token)
        raise self.error("a word", token)

    def parse_value_pipeline(self, outer: Token) -> Union[VariablePart, PropertyPart, ValuePipelinePart]:
        """Parse the inside of ``${...}``."""
        self.skip_newlines()
        base_token = self.peek()
        if base_token.type not in (TokenType.LITERAL, TokenType.KEYWORD):
            raise self.error("a variable name", outer if base_token.type is TokenType.EOF else None)
        self.next()
        name = base_token.value if base_token.type is TokenType.KEYWORD else base_token.value[0]

        base: Union[VariablePart, PropertyPart]
        if "." in name:
            name, key = name.split(".", 1)
            base = PropertyPart(name=name, key=key)
        else:
            base = VariablePart(name=name)
        if not (is_valid_name(name) or name.isdigit()):
            raise self.error("a variable name", base_token)

        filters: list[FilterNode] = []
        self.skip_newlines()
        while self.at(TokenType.PIPE):
            self.next()
            self.skip_newlines()
            filter_name = self.parse_word()
            if filter_name is None:
                raise self.error("a filter name")
            node = FilterNode(name=filter_name)
            self.skip_newlines()
            while (arg := self.parse_word()) is not None:
                node.args.append(arg)
                self.skip_newlines()
            filters.append(node)
        if not self.at(TokenType.EOF):
            raise self.error("'|' or '}'")

        if not filters:
            return base
        return ValuePipelinePart(base=base, filters=filters)


def _closing_text(type_: TokenType) -> str:
    return {TokenType.RBRACE: "}", TokenType.RPAREN: ")"}.get(type_, type_.name)


def parse(source: Union[str, list[Token]]) -> ProgramNode:
    """Parse source text (or an already lexed token list) into a program."""
    tokens = tokenize(source) if isinstance(source, str) else source
    program = Parser(tokens).parse_program()
    logger.debug("parsed %d statement(s)", len(program.statements))
    return program


def parse_words(text: str) -> list[WordNode]:
    """Parse text that must consist only of words, such as an alias value."""
    parser = Parser(tokenize(text))
    words = []
    while (word := parser.parse_word()) is not None:
        words.append(word)
    if not parser.at(TokenType.EOF):
        raise parser.error("a word")
    return words


def parse_interpolation(text: str) -> InterpolatedPart:
    """Parse text as the body of a backtick string."""
    position = Position()
    token = Token(TokenType.INTERPOLATED, text, position, lex_interpolation(text))
    parser = Parser([Token(TokenType.EOF, "", position)], nested=True)
    return parser._to_part(token)
