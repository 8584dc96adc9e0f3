"""Exceptions raised by the escape-time renderer."""


class RenderConfigError(ValueError):
    """A render configuration was rejected before any work was dispatched."""
