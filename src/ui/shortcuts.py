"""Keyboard mapping for delete gestures.

    Delete          delete selection, with confirmation
    Ctrl+Delete     permanently delete selection, with confirmation
    Shift+Delete    delete selection without confirmation
    Escape          dismiss the open confirmation prompt
"""

from __future__ import annotations

from enum import Enum

from PyQt6.QtCore import Qt


class ShortcutAction(Enum):
    DELETE = "delete"
    PERMANENT_DELETE = "permanent_delete"
    QUICK_DELETE = "quick_delete"
    CANCEL_PROMPT = "cancel_prompt"


_MODIFIER_MASK = (
    Qt.KeyboardModifier.ControlModifier
    | Qt.KeyboardModifier.ShiftModifier
    | Qt.KeyboardModifier.AltModifier
    | Qt.KeyboardModifier.MetaModifier
)

_DELETE_BINDINGS = {
    Qt.KeyboardModifier.NoModifier: ShortcutAction.DELETE,
    Qt.KeyboardModifier.ControlModifier: ShortcutAction.PERMANENT_DELETE,
    Qt.KeyboardModifier.ShiftModifier: ShortcutAction.QUICK_DELETE,
}


def _key_value(key: int | Qt.Key) -> int:
    return key.value if isinstance(key, Qt.Key) else int(key)


def resolve_shortcut(
    key: int | Qt.Key,
    modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier,
) -> ShortcutAction | None:
    """
    Map a key press to a delete action.

    Args:
        key: Key code, as returned by QKeyEvent.key()
        modifiers: Active modifiers, as returned by QKeyEvent.modifiers()

    Returns:
        The action bound to the key combination, or None
    """
    value = _key_value(key)

    if value == Qt.Key.Key_Escape.value:
        return ShortcutAction.CANCEL_PROMPT

    if value != Qt.Key.Key_Delete.value:
        return None

    # Keypad and other non-chord modifiers are ignored
    return _DELETE_BINDINGS.get(modifiers & _MODIFIER_MASK)
