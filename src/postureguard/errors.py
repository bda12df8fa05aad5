from __future__ import annotations


class PostureGuardError(Exception):
    pass


class EngineLoadError(PostureGuardError):
    """The pose model could not be loaded; the session cannot sample."""


class InferenceError(PostureGuardError):
    """A single frame could not be processed; the frame is skipped."""


class SessionStateError(PostureGuardError):
    pass
