"""
Error taxonomy for compilation, rendering, probing and scheme I/O.

Every error carries a human readable message suitable for showing to the
user as-is.
"""


class MatrixCutError(Exception):
    """Base class for all MatrixCut errors."""


class CompileError(MatrixCutError):
    """The timeline could not be compiled into a render program."""


class EmptyPool(CompileError):
    """A timeline segment refers to a pool with no assets."""

    def __init__(self, segment_index: int, pool_id: str, pool_name: str = ""):
        self.segment_index = segment_index
        self.pool_id = pool_id
        self.pool_name = pool_name
        label = pool_name or pool_id
        super().__init__(
            f"Segment {segment_index + 1} (pool: {label}) has no usable assets"
        )


class EmptyTimeline(MatrixCutError):
    """Export requested with no segments on the timeline."""

    def __init__(self):
        super().__init__("Timeline is empty, nothing to export")


class EngineLoadFailure(MatrixCutError):
    """The encoding engine could not be initialized."""


class EngineExecFailure(MatrixCutError):
    """The encoding engine exited with a non-zero return code."""

    def __init__(self, return_code: int, log_tail: str = ""):
        self.return_code = return_code
        self.log_tail = log_tail
        super().__init__(f"FFmpeg failed with exit code {return_code}")


class ProbeFailure(MatrixCutError):
    """Thumbnail/duration extraction failed for one asset."""


class SchemeError(MatrixCutError):
    """Base class for scheme import failures."""


class SchemeVersionMismatch(SchemeError):
    def __init__(self, version):
        self.version = version
        super().__init__(f"Unsupported scheme version: {version!r}")


class SchemeParseFailure(SchemeError):
    """The scheme file is not valid JSON or has a malformed structure."""
