"""
TCGSEED Main Executor
"""

import argparse
import asyncio
import logging
import sys
import traceback
from typing import Optional, Sequence

from tcgseed import constants
from tcgseed.errors import TcgSeedError
from tcgseed.utils import init_logger

LOGGER: logging.Logger = logging.getLogger(__name__)


def dispatcher(args: argparse.Namespace) -> None:
    """
    TCGSEED Dispatcher
    """
    from tcgseed.providers import ScryfallBulkProvider
    from tcgseed.seed import SeedOptions, list_sets, load_split_index, seed_cards
    from tcgseed.split import SplitOptions, split_bulk_data

    if args.command == "download":
        ScryfallBulkProvider().download(
            args.output or constants.BULK_DATA_PATH, force=args.force
        )
        return

    if args.command == "split":
        split_bulk_data(
            SplitOptions.from_config(
                bulk_path=args.input,
                output_dir=args.output,
                target_languages=args.lang,
                min_cards=args.min_cards,
                pretty_print=args.pretty,
                dry_run=args.dry_run,
            )
        )
        return

    options = SeedOptions.from_config(
        split_dir=args.split_dir,
        set_code=args.set,
        languages=args.lang,
        limit=args.limit,
        skip_images=args.skip_images,
        continue_on_error=args.continue_on_error,
        resume=args.resume,
        dry_run=args.dry_run,
    )
    if args.list:
        list_sets(load_split_index(options.split_dir))
        return
    asyncio.run(seed_cards(options))


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    TCGSEED safe main call
    """
    from tcgseed.arg_parser import parse_args
    from tcgseed.seed_config import SeedConfig

    args = parse_args(argv)
    init_logger()

    LOGGER.info(f"Starting TCGSEED {SeedConfig().version} on {constants.TCGSEED_BUILD_DATE}")

    try:
        dispatcher(args)
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted, progress up to the last checkpoint is kept")
        sys.exit(130)
    except TcgSeedError as error:
        LOGGER.fatal(f"{error}")
        sys.exit(1)
    except Exception as error:
        LOGGER.fatal(f"Exception caught: {error} {traceback.format_exc()}")
        sys.exit(1)


if __name__ == "__main__":
    main()
