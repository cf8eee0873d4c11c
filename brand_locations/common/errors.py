"""Domain errors and failure typing.

Per-record problems (a field no strategy could recover, a location that fails
a geographic or plausibility check) are not exceptions: they degrade to empty
fields or report rows. Only batch and brand level failures are raised.
"""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration and reference tables."""

    error_code = "CONFIG_ERROR"


class MalformedInputError(PipelineError):
    """Raised when a raw input batch cannot be parsed as structured data."""

    error_code = "MALFORMED_INPUT"


class EmptyResultError(PipelineError):
    """Raised when no valid North American locations survive for a brand."""

    error_code = "EMPTY_RESULT"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"
