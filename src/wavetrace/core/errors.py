"""Exception types raised by the render session."""


class RenderError(RuntimeError):
    """Base class for render session failures."""


class RenderStageError(RenderError):
    """A pipeline stage failed to execute.

    Stage failures are fatal for the session: no partial result is kept.

    Attributes:
        stage: Name of the failing stage (e.g. "intersect", "shade").
    """

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"Render stage '{stage}' failed: {message}")
        self.stage = stage


class SessionStateError(RenderError):
    """The session was used outside its initialize/teardown lifecycle."""
