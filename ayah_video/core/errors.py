class ReelError(RuntimeError):
    """Base class for failures that abort a video request."""


class InputValidationError(ReelError):
    """Request references a missing or malformed surah, ayah, reciter, background or style."""


class ContentLookupError(ReelError):
    """Verse or translation text is missing from the corpus."""


class AssetFetchError(ReelError):
    """Recitation audio could not be downloaded in time."""


class DurationProbeError(ReelError):
    """A media file's duration could not be determined."""


class FontUnavailableError(ReelError):
    """A logical font id does not resolve to a loadable font file."""


class CompositionError(ReelError):
    """ffmpeg reported a failure. `diagnostics` carries the engine output for operators."""

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics
