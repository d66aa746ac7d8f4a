from typing import Optional

from .interfaces import Image, SelectionStore


class SelectionState(SelectionStore):
    """
    In-memory selection store, one per application session.

    Images are frozen dataclasses, so `set_image` replaces the whole record in
    a single assignment and readers never see fields from two images.
    """

    def __init__(self) -> None:
        self._image: Optional[Image] = None

    def has_image(self) -> bool:
        return self._image is not None

    def get_image(self) -> Optional[Image]:
        return self._image

    def get_image_path(self) -> Optional[str]:
        return self._image.path if self._image is not None else None

    def set_image(self, image: Image) -> None:
        self._image = image

    def clear(self) -> None:
        self._image = None
