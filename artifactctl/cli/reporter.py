"""
Terminal output for the CLI, on top of rich.
"""
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn

console = Console()


class ConsoleReporter:
    """
    InstallReporter printing to a rich console.
    """

    def __init__(self, console: Console = console):
        self.console = console

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]INFO[/cyan] {escape(message)}", highlight=False)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]WARN[/yellow] {escape(message)}", highlight=False)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}", highlight=False)

    def error(self, message: str) -> None:
        self.console.print(f"[red]ERROR[/red] {escape(message)}", highlight=False)

    @contextmanager
    def working(self, message: str) -> Iterator[None]:
        with self.console.status(escape(message)):
            yield


class PullProgress:
    """
    DownloadProgress for OciPuller: a transient download bar per pulled file.

    The bar is a live display, so it is stopped as soon as its download ends;
    the extraction spinner that follows needs the console to itself.
    """

    def __init__(self, console: Console = console):
        self.console = console
        self._progress: Optional[Progress] = None
        self._task = None

    def update(self, filename: str, done: int, total: Optional[int]) -> None:
        if self._progress is None:
            self._progress = Progress(
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=self.console,
                transient=True,
            )
            self._progress.start()
            self._task = self._progress.add_task(escape(filename), total=total)
        self._progress.update(self._task, completed=done)

    def finish(self, filename: str) -> None:
        self.stop()

    def stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None
