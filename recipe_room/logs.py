import logging

from rich.logging import RichHandler


def setup_logging(level: str = "INFO") -> None:
    """Route the app's loggers through rich. Safe to call more than once."""
    root = logging.getLogger()
    if any(isinstance(h, RichHandler) for h in root.handlers):
        root.setLevel(level.upper())
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # The openai and httpx clients log every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
