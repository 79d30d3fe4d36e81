import logging
import sys

def setup_logging():
    """
    Configure application logging.

    Everything goes to stdout with a timestamp and level so the output can be
    picked up by the container runtime as is.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("storeflow")


logger = setup_logging()
