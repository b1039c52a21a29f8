"""Terminal spinners for long-running script steps."""
from __future__ import annotations

from contextlib import contextmanager, nullcontext
from typing import ContextManager, Iterator

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn


class ProgressManager:
    """Draw spinners on the logging console.

    Spinners are only drawn on an interactive terminal; inside the web server
    or under pytest they are no-ops.
    """

    def __init__(self) -> None:
        self._console: Console = Console(stderr=True)

    def use_console(self, console: Console) -> None:
        self._console = console

    def reset_console(self) -> None:
        self._console = Console(stderr=True)

    @property
    def enabled(self) -> bool:
        return self._console.is_terminal

    def spinner(self, description: str) -> ContextManager[None]:
        if not self.enabled:
            return nullcontext()
        return self._spinner(description)

    @contextmanager
    def _spinner(self, description: str) -> Iterator[None]:
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}[/]"),
            TimeElapsedColumn(),
            console=self._console,
            transient=True,
        )
        with progress:
            progress.add_task(description, total=None)
            yield


progress_manager = ProgressManager()
