"""ksqlDB dialect for sqlglot.

Only the tokenizer is customised: statements are tokenized with sqlglot and
then parsed by :mod:`ksqltopics.sql.parser`, since sqlglot has no grammar for
ksqlDB-specific DDL such as:
- CREATE STREAM / CREATE SOURCE TABLE
- REGISTER TYPE
- STRUCT<...>, ARRAY<...> and MAP<...> column types
- WITH (...) source properties
"""

from __future__ import annotations

from sqlglot.dialects.dialect import Dialect
from sqlglot.tokens import Tokenizer, TokenType


class KsqlDialect(Dialect):
    """Custom ksqlDB dialect for sqlglot."""

    class Tokenizer(Tokenizer):
        """ksqlDB tokenizer: single-quoted strings, back-tick identifiers."""

        QUOTES = ["'"]
        IDENTIFIERS = ["`", '"']
        STRING_ESCAPES = ["'"]

        KEYWORDS = {
            **Tokenizer.KEYWORDS,
            # ksqlDB-specific types
            "STRING": TokenType.VARCHAR,
            "BYTES": TokenType.VARBINARY,
            "INT": TokenType.INT,
            "INTEGER": TokenType.INT,
            "BIGINT": TokenType.BIGINT,
            "DOUBLE": TokenType.DOUBLE,
            "DECIMAL": TokenType.DECIMAL,
            "BOOLEAN": TokenType.BOOLEAN,
            "DATE": TokenType.DATE,
            "TIME": TokenType.TIME,
            "TIMESTAMP": TokenType.TIMESTAMP,
            "ARRAY": TokenType.ARRAY,
            "MAP": TokenType.MAP,
            "STRUCT": TokenType.STRUCT,
        }


# Token types whose text is a literal value rather than a keyword
LITERAL_TOKENS = {TokenType.STRING, TokenType.NUMBER}

# Quoted identifiers keep their case
QUOTED_IDENTIFIER_TOKENS = {TokenType.IDENTIFIER}
