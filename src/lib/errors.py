"""
Exception types for mdpress

Parsing never raises: grammar problems degrade to text. These exceptions cover
the edges of the engine (settings files and collaborators).
"""


class MdpressError(Exception):
    """Base class for all mdpress errors"""


class SettingsError(MdpressError):
    """A settings profile could not be read or failed validation"""


class RasterizationError(MdpressError):
    """
    An image rasterizer could not produce an image

    Rasterizers may raise this (or return None); the Renderer catches it and
    falls back to native rendering.
    """

    def __init__(self, asset_path: str, reason: str) -> None:
        self.asset_path = asset_path
        self.reason = reason
        super().__init__(f"{asset_path}: {reason}")
