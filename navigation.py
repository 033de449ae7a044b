"""
Navigation context: a single slot holding where "back" should go.

Not a history stack. Whichever view mounted last owns the slot, and every view
clears it on unmount so the next view starts from the default.
"""
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

DEFAULT_WELCOME = "Welcome to Codeabode"


class NavigationContext:
    def __init__(self) -> None:
        self.parent_path: Optional[str] = None

    def set_parent_path(self, path: Optional[str]) -> None:
        self.parent_path = path

    @contextmanager
    def mounted(self, path: Optional[str]) -> Iterator["NavigationContext"]:
        self.set_parent_path(path)
        try:
            yield self
        finally:
            self.set_parent_path(None)


def header_link(navigation: NavigationContext, user: Optional[str]) -> Tuple[str, str]:
    """What the header shows: a back link when a parent is set, otherwise a greeting."""
    if navigation.parent_path:
        return ("back", navigation.parent_path)
    if user:
        return ("welcome", f"Welcome, {user}!")
    return ("welcome", DEFAULT_WELCOME)
