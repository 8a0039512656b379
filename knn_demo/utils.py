import logging
from pathlib import Path


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the k-NN demo.

    Calling it again only changes the level of the existing handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper())

    logger = logging.getLogger("knn_demo")
    logger.setLevel(level)

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    logger.propagate = False

    return logger


def ensure_parent_directory(path: str) -> None:
    """Create the directory that will hold path if it doesn't exist."""
    parent = Path(path).parent
    parent.mkdir(parents=True, exist_ok=True)
    logging.getLogger("knn_demo").debug(f"Ensured directory exists: {parent}")
