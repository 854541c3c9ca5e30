"""ANSI styling for change reports.

Palette is a stateless value: every method takes the text to style and
returns it, wrapped in escape codes only when the palette is enabled.
"""

from dataclasses import dataclass

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
REVERSE = "\x1b[7m"
RED = "\x1b[31m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"
RED_ON_YELLOW = "\x1b[31;43m"


@dataclass(frozen=True)
class Palette:
    enabled: bool = True

    def wrap(self, code: str, text: str) -> str:
        if not self.enabled or not text:
            return text
        return f"{code}{text}{RESET}"

    def header(self, display_path: str) -> str:
        return self.wrap(BOLD, f"==> {display_path} <==")

    def inserted(self, text: str) -> str:
        return self.wrap(GREEN, text)

    def deleted(self, text: str) -> str:
        return self.wrap(RED, text)

    def removed_line(self, text: str) -> str:
        """Whole line removed by a delete: reverse red."""
        return self.wrap(REVERSE + RED, text)

    def highlight(self, text: str) -> str:
        return self.wrap(RED_ON_YELLOW, text)

    def reverse(self, text: str) -> str:
        return self.wrap(REVERSE, text)

    def success(self, text: str) -> str:
        return self.wrap(CYAN, text)

    def what_if(self, text: str) -> str:
        return self.wrap(YELLOW, text)
