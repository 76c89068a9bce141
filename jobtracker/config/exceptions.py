"""Errors raised while loading configuration."""

from typing import Iterable, Optional


class ConfigurationError(Exception):
    """
    Configuration could not be loaded or failed validation.

    ``str(error)`` renders the message, then the individual problems as a
    numbered list and the suggestions as bullets, ready to print to stderr.

    Attributes:
        message: Primary error message
        errors: Individual problems, one per line
        suggestions: Hints for fixing them
    """

    def __init__(
        self,
        message: str,
        errors: Optional[Iterable[str]] = None,
        suggestions: Optional[Iterable[str]] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(self._render())

    def _render(self) -> str:
        lines = [self.message]
        if self.errors:
            lines.append("")
            lines.append("Validation Errors:")
            lines.extend(f"  {n}. {error}" for n, error in enumerate(self.errors, 1))
        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            lines.extend(f"  - {hint}" for hint in self.suggestions)
        return "\n".join(lines)
