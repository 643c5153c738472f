"""Exception hierarchy for specmcp.

All exceptions inherit from :class:`SpecmcpError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specmcp.exit_codes`.
The CLI entry point in :func:`specmcp.app.main` catches ``SpecmcpError``
and exits with the appropriate code.

Lookup misses (unknown endpoint, unknown schema, unsupported ``$ref``) are
deliberately *not* represented here: they are rendered as ordinary text
results so an agent can keep working.

Subclass hierarchy::

    SpecmcpError (exit 1)
    +-- SpecParseError      (exit 7)
    +-- ConfigError         (exit 1)
"""

from specmcp.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecmcpError(Exception):
    """Base exception for all specmcp errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class SpecParseError(SpecmcpError):
    """Raised when the OpenAPI document cannot be acquired, parsed, or is not OpenAPI 3.x."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SpecmcpError):
    """Raised for configuration problems (invalid project file, missing spec file setting)."""

    exit_code = EXIT_GENERIC_FAILURE
