"""Run frouter without the API server: python -m frouter"""

import argparse
import asyncio
import logging
import sys

from .engine.pipeline import Pipeline
from .errors import ConfigError
from .settings import Settings

logger = logging.getLogger("frouter")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Watch directories and route new files by extension")
    parser.add_argument("--config", help="Routing configuration file")
    parser.add_argument("--db", help="SQLite move log path")
    parser.add_argument("--error-log", help="JSON-lines error log path")
    parser.add_argument("--delay", type=float, help="Quiet period in seconds before a batch is routed")
    parser.add_argument("--debounce", type=float, help="Window in seconds for dropping repeat notifications")
    parser.add_argument("--log-level", default="info", help="Log level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = Settings.from_env().with_overrides(
        config_path=args.config,
        db_path=args.db,
        error_log_path=args.error_log,
        delay_seconds=args.delay,
        debounce_seconds=args.debounce,
    )

    try:
        asyncio.run(Pipeline(settings).run_forever())
    except ConfigError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
