class InvalidViewport(ValueError):
    """Raised when a viewport cannot be rendered (bad scale, resolution or iteration cap)."""


class ExportError(RuntimeError):
    pass


class ExportIOFailure(ExportError):
    pass


class InvalidBuffer(ExportError):
    pass


class RenderCancelled(RuntimeError):
    """The render was superseded before it finished; its partial buffer was discarded."""
