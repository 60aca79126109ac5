from __future__ import annotations


class DeckError(Exception):
    """Base class for errors raised while laying out or exporting a deck."""


class LayoutError(DeckError):
    """A single slide could not be laid out."""


class UnsupportedLayout(LayoutError):
    pass


class UnsupportedGridArity(LayoutError):
    pass


class AssetError(DeckError):
    """An image could not be materialised. Always scoped to that one image."""

    condition = "AssetError"


class MissingSourceImage(AssetError):
    condition = "MissingSourceImage"


class ImageUnavailable(AssetError):
    condition = "ImageUnavailable"


class ExportCancelled(DeckError):
    pass
