"""Exception hierarchy for rereadme.

Fatal conditions are raised as one of these types and handled by the
pipeline orchestrator. Non-fatal conditions (snapshot, backup and format
failures) never raise; they are logged where they happen.
"""


class RereadmeError(Exception):
    """Base exception for all rereadme errors."""


class DependencyMissing(RereadmeError):
    """A required external tool or credential is not available.

    Raised before any pipeline step runs; always fatal.
    """


class StepError(RereadmeError):
    """A single pipeline step could not produce a document.

    The continue-on-error policy applies to this family only.
    """


class StepInputError(StepError):
    """An instruction asset, the format template, or the input document
    could not be read."""


class CompletionError(StepError):
    """The completion service call failed (transport, auth, or provider)."""


class EmptyCompletionError(StepError):
    """The completion service returned empty or whitespace-only output."""


class WriteFailure(RereadmeError):
    """The output document could not be written. Always fatal."""
