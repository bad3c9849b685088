"""Command line entry point.

Runs the migration chain against the stores named in settings.conf:

    state-migrator                 # migrate if needed
    state-migrator --check         # report the detected version only
    state-migrator --config-dir ~/.config/my-client
"""

import argparse
import sys
from pathlib import Path

import uvloop

from state_migrator import __version__
from state_migrator.config import create_migration_service, load_config
from state_migrator.constants import FRESH_INSTALL_VERSION
from state_migrator.exceptions import StateMigratorError
from state_migrator.logger import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="state-migrator",
        description="Migrate locally persisted client state to the "
        "latest schema version",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="directory holding settings.conf",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="report the stored schema version without migrating",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


async def async_main(args: argparse.Namespace) -> None:
    """Load settings, then detect or migrate."""
    config = load_config(args.config_dir)
    service = create_migration_service(config)

    if args.check:
        stored = await service.detector.detect()
        if stored == FRESH_INSTALL_VERSION:
            print("No stored state (fresh install)")
        else:
            print(f"Stored state version: v{stored}")
        print(f"Latest state version: v{service.latest_version}")
        return

    result = await service.migrate_if_needed()
    if result.fresh_install:
        print(f"Fresh install, state version set to v{result.to_version}")
    elif result.migrated:
        print(
            f"Migrated from v{result.from_version} to v{result.to_version} "
            f"({', '.join(result.applied_steps)})"
        )
    else:
        print(f"State already at v{result.to_version}")


def main(argv: list[str] | None = None) -> None:
    """Run the CLI on uvloop.

    Exits with status 1 on migration, storage or configuration errors.
    """
    args = build_parser().parse_args(argv)
    try:
        uvloop.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("Cancelled by user")
        sys.exit(1)
    except StateMigratorError as e:
        logger.error("%s", e)  # noqa: TRY400
        sys.exit(1)


if __name__ == "__main__":
    main()
