"""Exceptions shared by the pipeline stages, the worker and the API."""


class PipelineError(Exception):
    """Base class for failures that end a pipeline run with status=error."""


class TranscodeError(PipelineError):
    """The codec binary ran but exited non-zero."""

    def __init__(self, returncode: int, output: str = ""):
        self.returncode = returncode
        self.output = output
        super().__init__(f"ffmpeg exited with code {returncode}")


class ChunkTranscriptionError(PipelineError):
    def __init__(self, index: int, message: str):
        self.index = index
        super().__init__(message)


class AudioNotFoundError(PipelineError):
    pass


class TranscriptMissingError(PipelineError):
    pass


class ArtifactFormatError(PipelineError):
    """Model output could not be parsed or validated as the requested artifact."""


# Read accessor failures, mapped to HTTP status codes by the routes.

class AccessError(Exception):
    pass


class InvalidArgument(AccessError):
    pass


class NotFound(AccessError):
    pass


class PermissionDenied(AccessError):
    pass
