"""Error taxonomy.

Member-level problems never raise: an unbalanced body simply leaves the
member undiscovered. The exceptions below are file-level and abort the merge
of that one file only.
"""

from __future__ import annotations


class TemplateMergeError(Exception):
    """Base class for templatemerge errors."""


class ParseFailure(TemplateMergeError):
    """A source file could not be read as a unit (missing, bad encoding)."""


class BackupFailure(TemplateMergeError):
    """The safety copy could not be created. Nothing may be written."""


class BackupNotFound(TemplateMergeError):
    """No ``.backup`` sibling exists for the path being restored."""


class RestoreFailure(TemplateMergeError):
    """Copying the backup over the target failed."""


class WriteFailure(TemplateMergeError):
    """Writing the merged text failed after the backup was taken."""


class MergeQuit(TemplateMergeError):
    """Raised by a decider to stop the remaining queue for the current file."""
