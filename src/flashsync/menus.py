"""
Terminal implementations of the interactive selection collaborators.
"""

import asyncio
import os
from typing import Optional

from pick import pick

from flashsync.selection.interfaces import ConfirmationModal, ImagePicker


class TerminalConfirmationModal(ConfirmationModal):
    """Shows the warning as a pick menu with the confirmation action first."""

    def _prompt(
        self, confirmation_label: str, rejection_label: str, description: str
    ) -> bool:
        title = f"{description}\n\n(use arrow keys, ENTER to confirm)"
        _, index = pick([confirmation_label, rejection_label], title, indicator="*")
        return index == 0

    async def display(
        self, confirmation_label: str, rejection_label: str, description: str
    ) -> bool:
        return await asyncio.to_thread(
            self._prompt, confirmation_label, rejection_label, description
        )


class TerminalImagePicker(ImagePicker):
    """Asks for an image path on stdin. An empty answer closes the picker."""

    def _prompt(self) -> Optional[str]:
        try:
            answer = input("Path to image (leave empty to cancel): ").strip()
        except EOFError:
            return None
        return os.path.expanduser(answer) if answer else None

    async def select_image(self) -> Optional[str]:
        return await asyncio.to_thread(self._prompt)
