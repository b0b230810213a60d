"""
Export Errors
=============

Exception hierarchy for clip export.

Capture never raises these: a zero-area source is clamped and capacity
changes cannot fail. Everything here is local to a single export call and
leaves the ring buffer untouched.
"""


class ExportError(Exception):
    """Base class for all export failures."""
    pass


class InvalidStateError(ExportError):
    """Raised when encoder operations are called out of sequence."""
    pass


class ExportIoError(ExportError):
    """
    Raised when the export destination cannot be written.

    Covers unwritable directories, full disks and exhausted output
    path generation. The partially written file is always removed
    before this is raised.
    """
    pass


class ExportBusyError(ExportError):
    """Raised when an export is requested while another is in flight."""
    pass
