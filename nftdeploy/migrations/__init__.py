from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

from nftdeploy.deployer import Deployer
from nftdeploy.errors import NotFoundException
from nftdeploy.migrations import nft_creator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    number: int
    name: str
    migrate: Callable[[Deployer], None]


# Number 1 is conventionally the framework's own bootstrap migration.
MIGRATIONS: tuple[Migration, ...] = (
    Migration(number=2, name="nft_creator", migrate=nft_creator.migrate),
)


def get_migration(number: int) -> Migration:
    for migration in MIGRATIONS:
        if migration.number == number:
            return migration
    raise NotFoundException(f"Migration {number} not found")


def run_migration(migration: Migration, deployer: Deployer) -> None:
    logger.info("Running migration %s_%s", migration.number, migration.name)
    migration.migrate(deployer)
    logger.info("Finished migration %s_%s", migration.number, migration.name)
