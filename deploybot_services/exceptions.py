"""Errors raised while reading a previously posted deployment table."""


class DeployBotError(Exception):
    """Base exception for the deployment status bot."""


class DeploymentTableError(DeployBotError):
    """Anything wrong with the markdown deployment table."""


class MalformedTableError(DeploymentTableError):
    """A bot comment has the table heading but not the table shape."""


class RowParseError(MalformedTableError):
    """A single data row of the table could not be read."""

    def __init__(self, row_number: int, line: str, reason: str):
        self.row_number = row_number
        self.line = line
        self.reason = reason
        super().__init__(f"Row {row_number} of deployment table: {reason} ({line!r})")


class UnknownStatusLabelError(MalformedTableError):
    """Status cell text does not match any known status label."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Unknown deployment status label: {label!r}")
