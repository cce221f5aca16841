"""Exception types for smart-approve.

None of these escape the hook: each stage catches its own failure and
degrades to "no opinion".
"""


class SmartApproveError(Exception):
    """Base error for smart-approve failures."""


class OracleUnavailable(SmartApproveError):
    """The external oracle could not produce an answer.

    Raised by oracle backends on timeout, transport failure or a failed
    process; the adapter maps it to an ambiguous verdict.
    """


class ManifestError(SmartApproveError):
    """A package manifest exists but cannot be used."""
