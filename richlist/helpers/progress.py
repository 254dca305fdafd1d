"""Shared progress bar utilities for Rich console displays."""

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


def create_standard_progress(
    console: Console | None = None, *, expand: bool = False
) -> Progress:
    """Create a progress bar with time remaining estimation.

    Used for balance fetching, where the number of addresses is known up
    front.

    Args:
        console: Rich console instance (optional)
        expand: Whether to expand the progress bar to full width

    Returns:
        Configured Progress instance

    Example:
        ```python
        from richlist.helpers.progress import create_standard_progress

        with create_standard_progress() as progress:
            task_id = progress.add_task("Fetching balances", total=200)
            progress.update(task_id, advance=1)
        ```
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("•"),
        TimeRemainingColumn(),
        console=console,
        expand=expand,
    )


@contextmanager
def track_progress(
    description: str,
    total: int,
    console: Console | None = None,
) -> Iterator[tuple[Progress, TaskID]]:
    """Context manager yielding a live progress bar and its task.

    Args:
        description: Task description to display
        total: Total number of items to process
        console: Rich console instance (optional)

    Yields:
        Tuple of (Progress instance, TaskID) for updating progress

    Example:
        ```python
        from richlist.helpers.progress import track_progress

        with track_progress("Fetching balances", total=len(addresses)) as (progress, task):
            records = await fetch_balances_batch(
                explorer, addresses, 16, progress=progress, task_id=task
            )
        ```
    """
    progress = create_standard_progress(console)
    with progress:
        task_id = progress.add_task(description, total=total)
        yield progress, task_id


__all__ = [
    "TaskID",
    "create_standard_progress",
    "track_progress",
]
