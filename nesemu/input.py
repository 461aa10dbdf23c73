"""Keyboard and game-controller input mapped onto the NES controller byte."""

import logging
from enum import IntEnum
from typing import Optional

_log = logging.getLogger(__name__)


class Button(IntEnum):
    """Bit positions of the NES controller buttons."""

    A = 0
    B = 1
    SELECT = 2
    START = 3
    UP = 4
    DOWN = 5
    LEFT = 6
    RIGHT = 7


class QuitRequested(Exception):
    """Raised when the user asks to leave the program (Shift+Escape)."""


KEY_BINDINGS = {
    "j": Button.A,
    "k": Button.B,
    "space": Button.SELECT,
    "return": Button.START,
    "w": Button.UP,
    "s": Button.DOWN,
    "a": Button.LEFT,
    "d": Button.RIGHT,
}

CONTROLLER_BUTTON_NAMES = (
    "A", "B", "X", "Y", "Back", "Guide", "Start", "Left Stick", "Right Stick",
    "Left Shoulder", "Right Shoulder", "D-Pad Up", "D-Pad Down", "D-Pad Left",
    "D-Pad Right",
)


class InputHandler:
    """Tracks which NES buttons are held, one bit per button in ``state``."""

    def __init__(self) -> None:
        self.state = 0

    def set_button(self, button: int, pressed: bool) -> None:
        """Set or clear the bit for ``button``."""
        if pressed:
            self.state |= 1 << button
        else:
            self.state &= ~(1 << button) & 0xFF

    def handle_key(self, key: str, pressed: bool, shift: bool = False) -> Optional[Button]:
        """Apply a key press or release by key name; returns the button it drove, if any.

        Shift+Escape raises QuitRequested; other keys are ignored while Shift is held.
        """
        key = key.lower()
        if shift:
            if key == "escape":
                _log.info("SHIFT + ESCAPE pressed. Exiting program.")
                raise QuitRequested()
            return None
        button = KEY_BINDINGS.get(key)
        if button is None:
            return None
        self.set_button(button, pressed)
        _log.info("Key %s: %s", "Pressed" if pressed else "Released", key)
        return button

    def handle_controller_button(self, button: int, pressed: bool) -> Optional[str]:
        """Report a game-controller button event; returns its name, or None if unknown."""
        if not 0 <= button < len(CONTROLLER_BUTTON_NAMES):
            return None
        name = CONTROLLER_BUTTON_NAMES[button]
        _log.info("Controller Button %s: %s", "Pressed" if pressed else "Released", name)
        return name