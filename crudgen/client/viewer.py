"""Tabbed code viewer: one tab per generated section, with copy-to-clipboard."""

import json
import time
from typing import Any, Callable, Optional, Protocol

from crudgen.config import config

ERROR_TAB = "Error"


class Clipboard(Protocol):
    def write_text(self, text: str) -> None: ...


class MemoryClipboard:
    """Clipboard sink that keeps the last copied text."""

    def __init__(self):
        self.text = ""

    def write_text(self, text: str) -> None:
        self.text = text


def highlight_language(language: str) -> str:
    """Syntax highlighter grammar for a target language."""
    return "java" if language == "java" else "javascript"


class CodeViewer:
    def __init__(
        self,
        clipboard: Optional[Clipboard] = None,
        clock: Callable[[], float] = time.monotonic,
        confirmation_seconds: float = config.COPY_CONFIRMATION_SECONDS,
    ):
        self.clipboard = clipboard or MemoryClipboard()
        self.clock = clock
        self.confirmation_seconds = confirmation_seconds
        self.sections: dict[str, str] = {}
        self.active_tab = ""
        self._copied_until: Optional[float] = None

    @property
    def tabs(self) -> list[str]:
        return list(self.sections)

    @property
    def code(self) -> str:
        return self.sections.get(self.active_tab, "")

    @property
    def copied(self) -> bool:
        return self._copied_until is not None and self.clock() < self._copied_until

    def clear(self) -> None:
        self.sections = {}
        self.active_tab = ""
        self._copied_until = None

    def show(self, sections: dict[str, Any]) -> None:
        """Display parsed sections. The first key becomes active unless a still-present tab is selected."""
        self.sections = {
            str(label): value if isinstance(value, str) else json.dumps(value, indent=2)
            for label, value in sections.items()
        }
        if self.active_tab not in self.sections:
            self.active_tab = next(iter(self.sections), "")

    def show_error(self, message: str) -> None:
        self.sections = {ERROR_TAB: message}
        self.active_tab = ERROR_TAB

    def select(self, tab: str) -> None:
        if tab not in self.sections:
            raise KeyError(tab)
        self.active_tab = tab

    def copy(self) -> str:
        text = self.code
        self.clipboard.write_text(text)
        self._copied_until = self.clock() + self.confirmation_seconds
        return text
