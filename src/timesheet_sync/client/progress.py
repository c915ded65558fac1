"""Per-entry upload progress, rendered with rich."""

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

MESSAGE_LENGTH = 50
DONE_STRING = "[green]uploaded![/green]"
ERROR_STRING = "[red]failed![/red]"


def truncate(text: str, length: int) -> str:
    """Chop ``text`` at ``length`` characters, ending it with "..."."""
    if length <= 0 or len(text) <= length:
        return text
    return text[: max(length - 3, 0)] + "..."


def new_progress(console: Console | None = None) -> Progress:
    """Build the progress display used while uploading."""
    return Progress(
        SpinnerColumn(finished_text="•"),
        TextColumn("{task.description}"),
        TextColumn("{task.fields[status]}"),
        TimeElapsedColumn(),
        console=console,
    )


class ProgressTracker:
    """Registers one tracked unit of work per uploaded entry.

    The wrapped Progress is started and stopped by its owner; rich guards
    task registration with a lock, so workers may call in concurrently.
    """

    def __init__(self, progress: Progress) -> None:
        self.progress = progress

    def start(self, message: str) -> TaskID:
        """Register a unit of work and return its handle."""
        return self.progress.add_task(truncate(message, MESSAGE_LENGTH), total=1, status="")

    def stop(self, task_id: TaskID, error: BaseException | None = None) -> None:
        """Mark the unit of work as done, or as errored when ``error`` is set."""
        status = DONE_STRING if error is None else ERROR_STRING
        self.progress.update(task_id, completed=1, status=status)
