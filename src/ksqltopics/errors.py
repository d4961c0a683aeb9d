"""Errors raised while reading a single ksqlDB statement.

Every error a statement can legitimately cause derives from
:class:`StatementError`. Topic inference treats these as "no topic" for the
statement; anything else is a bug and propagates.
"""


class StatementError(Exception):
    """Base error for a statement that cannot be read."""

    pass


class KsqlSyntaxError(StatementError):
    """Statement is not valid ksqlDB syntax."""

    pass


class ResolutionError(StatementError):
    """Statement references a type or source that is not known."""

    pass


class PropertyError(StatementError):
    """Invalid or missing WITH clause property."""

    pass


class FormatError(StatementError):
    """Unknown or unsupported serialization format."""

    pass


class SerdeConfigurationError(StatementError):
    """Serde options cannot be applied to the statement's schema or formats."""

    pass
