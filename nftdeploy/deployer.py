from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployResult:
    contract_name: str
    constructor_args: tuple[Any, ...]
    address: str | None = None
    transaction_hash: str | None = None


class Deployer(Protocol):
    """Provisioning collaborator handed to every migration."""

    def deploy(self, contract_name: str, *args: Any) -> DeployResult: ...


class RecordingDeployer:
    """Deployer that only records requests. Used for dry runs."""

    def __init__(self) -> None:
        self.results: list[DeployResult] = []

    def deploy(self, contract_name: str, *args: Any) -> DeployResult:
        logger.info("Dry run: would deploy %s with %d constructor args", contract_name, len(args))
        logger.debug("Dry run constructor args for %s: %r", contract_name, args)
        result = DeployResult(contract_name=contract_name, constructor_args=tuple(args))
        self.results.append(result)
        return result
