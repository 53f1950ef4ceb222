import logging
import sys


def setup_logging(level: int | str = logging.INFO) -> None:
    root = logging.getLogger()
    if root.handlers:
        return  # already configured (uvicorn, pytest)
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    )
    root.addHandler(handler)
