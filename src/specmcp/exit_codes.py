"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specmcp.exceptions.SpecmcpError` subclass.
Wrapper scripts can inspect the exit code to tell a bad invocation from an
unreachable or unreadable spec without parsing stderr.

Example::

    $ specmcp --spec-file missing.json tags
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- the document could not be loaded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be fetched, parsed, or is not OpenAPI 3.x."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
