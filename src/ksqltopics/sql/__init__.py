"""ksqlDB statement parsing."""

from ksqltopics.sql.metastore import FunctionRegistry, MetaStore
from ksqltopics.sql.parser import KsqlParser, is_create_source, is_type_registration
from ksqltopics.sql.tree import ParsedStatement, PreparedStatement, StatementKind

__all__ = [
    "KsqlParser",
    "MetaStore",
    "FunctionRegistry",
    "ParsedStatement",
    "PreparedStatement",
    "StatementKind",
    "is_create_source",
    "is_type_registration",
]
