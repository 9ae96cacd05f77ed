import logging
import sys


def setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # urllib3 es muy ruidoso en DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO if debug else logging.WARNING)
