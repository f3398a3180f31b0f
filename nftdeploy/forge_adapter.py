from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any

from nftdeploy.artifacts import find_artifact, load_artifact, validate_constructor_args
from nftdeploy.deployer import DeployResult
from nftdeploy.errors import ConfigurationException
from nftdeploy.proc import CommandRunner, run_command

logger = logging.getLogger(__name__)

SECRET_FLAGS = ("--private-key",)


@dataclass(frozen=True)
class ForgeSettings:
    rpc_url: str
    private_key: str | None = None
    account: str | None = None
    contracts_dir: str = "src"
    artifacts_dir: Path = Path("out")

    def __post_init__(self) -> None:
        if not self.rpc_url:
            raise ConfigurationException("An RPC URL is required (NFTDEPLOY_RPC_URL)")
        if bool(self.private_key) == bool(self.account):
            raise ConfigurationException(
                "Provide exactly one of NFTDEPLOY_PRIVATE_KEY or NFTDEPLOY_ACCOUNT"
            )

    @classmethod
    def from_env(cls) -> "ForgeSettings":
        return cls(
            rpc_url=os.getenv("NFTDEPLOY_RPC_URL", ""),
            private_key=os.getenv("NFTDEPLOY_PRIVATE_KEY") or None,
            account=os.getenv("NFTDEPLOY_ACCOUNT") or None,
            contracts_dir=os.getenv("NFTDEPLOY_CONTRACTS_DIR", "src"),
            artifacts_dir=Path(os.getenv("NFTDEPLOY_ARTIFACTS_DIR", "out")),
        )


def format_constructor_arg(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ForgeDeployer:
    """Deployer that creates contracts with ``forge create``."""

    def __init__(self, settings: ForgeSettings, *, runner: CommandRunner | None = None) -> None:
        self._settings = settings
        self._runner = runner
        self.results: list[DeployResult] = []

    def contract_ref(self, contract_name: str) -> str:
        return f"{self._settings.contracts_dir}/{contract_name}.sol:{contract_name}"

    def _check_against_artifact(self, contract_name: str, args: tuple[Any, ...]) -> None:
        path = find_artifact(contract_name, self._settings.artifacts_dir)
        if path is None:
            logger.warning(
                "No artifact for %s under %s, skipping constructor argument check",
                contract_name,
                self._settings.artifacts_dir,
            )
            return
        validate_constructor_args(load_artifact(contract_name, path), args)

    def _build_command(self, contract_name: str, args: tuple[Any, ...]) -> list[str]:
        cmd = [
            "forge",
            "create",
            self.contract_ref(contract_name),
            "--rpc-url",
            self._settings.rpc_url,
        ]
        if self._settings.private_key:
            cmd.extend(["--private-key", self._settings.private_key])
        else:
            cmd.extend(["--account", self._settings.account])
        cmd.extend(["--broadcast", "--json"])
        if args:
            cmd.append("--constructor-args")
            cmd.extend(format_constructor_arg(arg) for arg in args)
        return cmd

    def deploy(self, contract_name: str, *args: Any) -> DeployResult:
        logger.info(
            "Deploying %s via forge (%d constructor args)",
            self.contract_ref(contract_name),
            len(args),
        )
        self._check_against_artifact(contract_name, args)

        result = run_command(
            self._build_command(contract_name, args),
            runner=self._runner,
            error_message=f"Failed to deploy {contract_name}",
            secret_flags=SECRET_FLAGS,
        )
        deployed = _parse_create_output(contract_name, args, result.stdout)
        logger.info(
            "Deployed %s at %s (tx=%s)",
            contract_name,
            deployed.address,
            deployed.transaction_hash,
        )
        self.results.append(deployed)
        return deployed


def _parse_create_output(contract_name: str, args: tuple[Any, ...], stdout: str) -> DeployResult:
    # forge may print compiler chatter before the JSON document
    payload = None
    for line in reversed(stdout.strip().splitlines()):
        try:
            payload = json.loads(line)
            break
        except json.JSONDecodeError:
            continue
    if not isinstance(payload, dict) or not isinstance(payload.get("deployedTo"), str):
        raise ValueError(f"Invalid JSON from forge create for contract {contract_name}")

    tx_hash = payload.get("transactionHash")
    return DeployResult(
        contract_name=contract_name,
        constructor_args=tuple(args),
        address=payload["deployedTo"],
        transaction_hash=tx_hash if isinstance(tx_hash, str) else None,
    )
