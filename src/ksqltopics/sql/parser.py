"""Parser for the ksqlDB statements that imply topics.

Statements are tokenized with sqlglot using :class:`KsqlDialect`. Only
``REGISTER TYPE`` and ``CREATE STREAM`` / ``CREATE TABLE`` are parsed into a
syntax tree; every other statement is classified as OTHER and left untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from sqlglot.errors import TokenError
from sqlglot.tokens import Token, TokenType

from ksqltopics.errors import KsqlSyntaxError, ResolutionError
from ksqltopics.sql.dialect import LITERAL_TOKENS, QUOTED_IDENTIFIER_TOKENS, KsqlDialect
from ksqltopics.sql.metastore import MetaStore
from ksqltopics.sql.tree import (
    CREATE_SOURCE_KINDS,
    ColumnConstraint,
    CreateSource,
    CreateSourceProperties,
    ParsedStatement,
    PreparedStatement,
    RegisterType,
    StatementKind,
    TableElement,
)
from ksqltopics.sql.types import (
    PRIMITIVE_ALIASES,
    SqlArray,
    SqlDecimal,
    SqlMap,
    SqlPrimitive,
    SqlStruct,
    SqlStructField,
    SqlType,
    SqlTypeReference,
    resolve_type,
)

logger = logging.getLogger(__name__)

WORD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_@$]*$")


@dataclass(frozen=True)
class _Tok:
    """A token reduced to what the parser needs."""

    type: TokenType
    text: str

    @property
    def upper(self) -> str:
        return self.text.upper()

    @property
    def is_literal(self) -> bool:
        return self.type in LITERAL_TOKENS

    @property
    def is_quoted(self) -> bool:
        return self.type in QUOTED_IDENTIFIER_TOKENS

    @property
    def is_word(self) -> bool:
        return not self.is_literal and (self.is_quoted or bool(WORD_PATTERN.match(self.text)))


def _flatten(token: Token) -> list[_Tok]:
    """Split multi-word keyword tokens such as PRIMARY KEY into single words."""
    if token.token_type in LITERAL_TOKENS or token.token_type in QUOTED_IDENTIFIER_TOKENS:
        return [_Tok(token.token_type, token.text)]
    words = token.text.split()
    if len(words) <= 1:
        return [_Tok(token.token_type, token.text)]
    return [_Tok(TokenType.VAR, word) for word in words]


# ============================================================================
# Classification
# ============================================================================


def classify(tokens: list[_Tok]) -> StatementKind:
    """Classify a statement from its leading keywords.

    Never raises: anything that does not look like a type registration or a
    plain stream/table creation is OTHER.
    """
    words = [t.upper if not t.is_literal and not t.is_quoted else "" for t in tokens]

    if words[:2] == ["REGISTER", "TYPE"]:
        return StatementKind.REGISTER_TYPE

    if not words or words[0] != "CREATE":
        return StatementKind.OTHER

    index = 1
    if words[index:index + 2] == ["OR", "REPLACE"]:
        index += 2
    if index < len(words) and words[index] == "SOURCE":
        index += 1
    if index >= len(words) or words[index] not in ("STREAM", "TABLE"):
        return StatementKind.OTHER

    kind = StatementKind.CREATE_STREAM if words[index] == "STREAM" else StatementKind.CREATE_TABLE

    # CREATE STREAM ... AS SELECT is a persistent query, not a source
    depth = 0
    for token in tokens[index + 1:]:
        if token.text == "(":
            depth += 1
        elif token.text == ")":
            depth -= 1
        elif depth == 0 and not token.is_literal and not token.is_quoted and token.upper == "AS":
            return StatementKind.OTHER

    return kind


def is_type_registration(statement: ParsedStatement) -> bool:
    return statement.kind == StatementKind.REGISTER_TYPE


def is_create_source(statement: ParsedStatement) -> bool:
    return statement.kind in CREATE_SOURCE_KINDS


# ============================================================================
# Parser
# ============================================================================


class KsqlParser:
    """Parser for ksqlDB statements."""

    def __init__(self) -> None:
        self.dialect = KsqlDialect()

    def parse(self, sql: str) -> list[ParsedStatement]:
        """Split ``sql`` into statements and parse each of them.

        Raises:
            KsqlSyntaxError: If the text cannot be tokenized, or a type
                registration or stream/table creation is malformed
        """
        try:
            tokens = self.dialect.tokenize(sql)
        except TokenError as e:
            raise KsqlSyntaxError(f"Failed to tokenize statement: {e}")

        statements = []
        for chunk in self._split(tokens):
            text = sql[chunk[0].start:chunk[-1].end + 1]
            flat = [tok for token in chunk for tok in _flatten(token)]
            kind = classify(flat)
            if kind == StatementKind.OTHER:
                statements.append(ParsedStatement(text=text, kind=kind))
            else:
                node = _StatementParser(flat, text).parse(kind)
                statements.append(ParsedStatement(text=text, kind=kind, statement=node))
        return statements

    def prepare(self, statement: ParsedStatement, metastore: MetaStore) -> PreparedStatement:
        """Resolve the custom types a parsed statement references.

        Raises:
            ResolutionError: If a referenced type is not registered
            ValueError: If the statement was not parsed into a syntax tree
        """
        node = statement.statement
        if node is None:
            raise ValueError(f"Statement of kind {statement.kind.value} cannot be prepared")

        def resolve(sql_type: SqlType) -> SqlType:
            try:
                return resolve_type(sql_type, metastore.resolve_type)
            except KeyError as e:
                raise ResolutionError(f"Cannot resolve unknown type: {e.args[0]}")

        if isinstance(node, RegisterType):
            prepared = RegisterType(node.name, resolve(node.type), node.if_not_exists)
        else:
            prepared = node.copy_with(
                elements=tuple(
                    TableElement(e.name, resolve(e.type), e.constraint, e.header_key)
                    for e in node.elements
                )
            )
        return PreparedStatement(text=statement.text, kind=statement.kind, statement=prepared)

    def _split(self, tokens: list[Token]) -> list[list[Token]]:
        """Split a token stream on top-level semicolons, dropping empty statements."""
        chunks: list[list[Token]] = [[]]
        for token in tokens:
            if token.token_type == TokenType.SEMICOLON:
                chunks.append([])
            else:
                chunks[-1].append(token)
        return [chunk for chunk in chunks if chunk]


class _StatementParser:
    """Recursive-descent parser over the tokens of a single statement."""

    def __init__(self, tokens: list[_Tok], text: str) -> None:
        self.tokens = tokens
        self.text = text
        self.index = 0

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Optional[_Tok]:
        position = self.index + offset
        return self.tokens[position] if position < len(self.tokens) else None

    def _error(self, message: str) -> KsqlSyntaxError:
        token = self._peek()
        found = f"'{token.text}'" if token else "end of statement"
        return KsqlSyntaxError(f"{message}, found {found}: {self.text}")

    def _match_keyword(self, *words: str) -> bool:
        for offset, word in enumerate(words):
            token = self._peek(offset)
            if token is None or not token.is_word or token.is_quoted or token.upper != word:
                return False
        self.index += len(words)
        return True

    def _expect_keyword(self, *words: str) -> None:
        if not self._match_keyword(*words):
            raise self._error(f"Expected {' '.join(words)}")

    def _match_symbol(self, symbol: str) -> bool:
        token = self._peek()
        if token is not None and not token.is_literal and token.text == symbol:
            self.index += 1
            return True
        return False

    def _expect_symbol(self, symbol: str) -> None:
        if not self._match_symbol(symbol):
            raise self._error(f"Expected '{symbol}'")

    def _expect_closing_angle(self) -> None:
        token = self._peek()
        if token is not None and not token.is_literal and token.text == ">>":
            # Nested generics: consume one '>' and leave the other
            self.tokens[self.index] = _Tok(TokenType.GT, ">")
            return
        self._expect_symbol(">")

    def _identifier(self) -> str:
        token = self._peek()
        if token is None or not token.is_word:
            raise self._error("Expected identifier")
        self.index += 1
        return token.text if token.is_quoted else token.upper

    def _integer(self) -> int:
        token = self._peek()
        if token is None or token.type != TokenType.NUMBER or not token.text.isdigit():
            raise self._error("Expected integer")
        self.index += 1
        return int(token.text)

    def _string(self) -> str:
        token = self._peek()
        if token is None or token.type != TokenType.STRING:
            raise self._error("Expected string literal")
        self.index += 1
        return token.text

    def _expect_end(self) -> None:
        if self._peek() is not None:
            raise self._error("Unexpected input")

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse(self, kind: StatementKind) -> Any:
        if kind == StatementKind.REGISTER_TYPE:
            return self._register_type()
        return self._create_source(kind)

    def _register_type(self) -> RegisterType:
        self._expect_keyword("REGISTER", "TYPE")
        if_not_exists = self._match_keyword("IF", "NOT", "EXISTS")
        name = self._identifier()
        self._expect_keyword("AS")
        sql_type = self._type()
        self._expect_end()
        return RegisterType(name=name, type=sql_type, if_not_exists=if_not_exists)

    def _create_source(self, kind: StatementKind) -> CreateSource:
        self._expect_keyword("CREATE")
        or_replace = self._match_keyword("OR", "REPLACE")
        is_source = self._match_keyword("SOURCE")
        self._expect_keyword("STREAM" if kind == StatementKind.CREATE_STREAM else "TABLE")
        if_not_exists = self._match_keyword("IF", "NOT", "EXISTS")
        name = self._identifier()

        elements: tuple[TableElement, ...] = ()
        if self._match_symbol("("):
            elements = self._table_elements()
            self._expect_symbol(")")

        literals: dict[str, Any] = {}
        if self._match_keyword("WITH"):
            literals = self._properties()
        self._expect_end()

        self._validate_constraints(kind, elements)

        return CreateSource(
            kind=kind,
            name=name,
            elements=elements,
            properties=CreateSourceProperties.from_literals(literals),
            or_replace=or_replace,
            if_not_exists=if_not_exists,
            is_source=is_source,
        )

    def _validate_constraints(self, kind: StatementKind, elements: tuple[TableElement, ...]) -> None:
        seen: set[str] = set()
        for element in elements:
            if element.name in seen:
                raise KsqlSyntaxError(f"Duplicate column names: `{element.name}`")
            seen.add(element.name)

            if kind == StatementKind.CREATE_TABLE and element.constraint == ColumnConstraint.KEY:
                raise KsqlSyntaxError(
                    f"Column `{element.name}` is a 'KEY' column: please use 'PRIMARY KEY' for tables."
                )
            if kind == StatementKind.CREATE_STREAM and element.constraint == ColumnConstraint.PRIMARY_KEY:
                raise KsqlSyntaxError(
                    f"Column `{element.name}` is a 'PRIMARY KEY' column: please use 'KEY' for streams."
                )

    def _table_elements(self) -> tuple[TableElement, ...]:
        elements = [self._table_element()]
        while self._match_symbol(","):
            elements.append(self._table_element())
        return tuple(elements)

    def _table_element(self) -> TableElement:
        name = self._identifier()
        sql_type = self._type()

        if self._match_keyword("PRIMARY", "KEY"):
            return TableElement(name, sql_type, ColumnConstraint.PRIMARY_KEY)
        if self._match_keyword("KEY"):
            return TableElement(name, sql_type, ColumnConstraint.KEY)
        if self._match_keyword("HEADERS"):
            return TableElement(name, sql_type, ColumnConstraint.HEADERS)
        if self._match_keyword("HEADER"):
            self._expect_symbol("(")
            header_key = self._string()
            self._expect_symbol(")")
            return TableElement(name, sql_type, ColumnConstraint.HEADER, header_key)
        return TableElement(name, sql_type)

    def _properties(self) -> dict[str, Any]:
        self._expect_symbol("(")
        literals = {}
        while True:
            name = self._identifier().upper()
            self._expect_symbol("=")
            if name in literals:
                raise self._error(f"Duplicate property {name}")
            literals[name] = self._literal()
            if not self._match_symbol(","):
                break
        self._expect_symbol(")")
        return literals

    def _literal(self) -> Any:
        token = self._peek()
        if token is None:
            raise self._error("Expected literal")
        if token.type == TokenType.STRING:
            self.index += 1
            return token.text
        negative = self._match_symbol("-")
        token = self._peek()
        if token is not None and token.type == TokenType.NUMBER:
            try:
                number = float(token.text) if any(c in token.text for c in ".eE") else int(token.text)
            except ValueError:
                raise self._error("Invalid numeric literal")
            self.index += 1
            return -number if negative else number
        if not negative and self._match_keyword("TRUE"):
            return True
        if not negative and self._match_keyword("FALSE"):
            return False
        raise self._error("Expected literal")

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _type(self) -> SqlType:
        token = self._peek()
        if token is None or not token.is_word:
            raise self._error("Expected type")

        if token.is_quoted:
            self.index += 1
            return SqlTypeReference(token.text)

        name = token.upper
        self.index += 1

        if name == "ARRAY":
            self._expect_symbol("<")
            item = self._type()
            self._expect_closing_angle()
            return SqlArray(item)

        if name == "MAP":
            self._expect_symbol("<")
            key = self._type()
            self._expect_symbol(",")
            value = self._type()
            self._expect_closing_angle()
            return SqlMap(key, value)

        if name == "STRUCT":
            if self._match_symbol("<>"):
                return SqlStruct(())
            self._expect_symbol("<")
            fields = []
            if not self._match_symbol(">"):
                fields.append(self._struct_field())
                while self._match_symbol(","):
                    fields.append(self._struct_field())
                self._expect_closing_angle()
            return SqlStruct(tuple(fields))

        if name == "DECIMAL":
            self._expect_symbol("(")
            precision = self._integer()
            self._expect_symbol(",")
            scale = self._integer()
            self._expect_symbol(")")
            if precision < 1 or scale < 0 or scale > precision:
                raise KsqlSyntaxError(f"Invalid DECIMAL({precision}, {scale}): {self.text}")
            return SqlDecimal(precision, scale)

        if name in PRIMITIVE_ALIASES:
            if name == "VARCHAR" and self._match_symbol("("):
                self._integer()
                self._expect_symbol(")")
            return SqlPrimitive(PRIMITIVE_ALIASES[name])

        return SqlTypeReference(name)

    def _struct_field(self) -> SqlStructField:
        name = self._identifier()
        return SqlStructField(name, self._type())
