#!/usr/bin/env python3
# Fallback Server
# License: MIT License
# Description: Serves static files from a local directory and proxies anything
# missing to a remote origin. Run: python serve.py --root public
import sys

from fallbackserver.config import parse_args
from fallbackserver.log import setup_logging
from fallbackserver.model.types import RootDirectoryMissing
from fallbackserver.server import FallbackServer


def main(argv=None):
    """
    Main function to run the fallback server.
    """
    config = parse_args(argv)
    logger = setup_logging(verbose=config.verbose, log_file=config.log_file)

    server = FallbackServer(config)
    try:
        server.start()
    except RootDirectoryMissing as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Failed to start server on {config.host}:{config.port}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
