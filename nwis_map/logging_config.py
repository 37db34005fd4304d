# ───────────────────────────────────────────────────────────
import logging

from rich.logging import RichHandler


def configure(level: str = "INFO") -> None:
    """Route all records through a rich console handler (used by the CLI)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=False, show_path=False)],
        force=True,
    )
