import logging
import os
import sys


def configure_logging() -> None:
    """
    Configure structured logging for the whole app.
    Call this once at FastAPI startup (or at the top of a script).
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # httpx logs every request at INFO; session lookups would flood the output
    logging.getLogger("httpx").setLevel(logging.WARNING)


logger = logging.getLogger("scholarship_portal")
