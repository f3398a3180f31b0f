from __future__ import annotations

import json
from pathlib import Path
import subprocess

import pytest

from nftdeploy.errors import ConfigurationException, ConstructorArgumentsException
from nftdeploy.forge_adapter import ForgeDeployer, ForgeSettings, format_constructor_arg
from nftdeploy.migrations import nft_creator
from nftdeploy.proc import AdapterCommandError
from tests.artifact_utils import write_foundry_artifact
from tests.conftest import completed

PRIVATE_KEY = "0x" + "11" * 32
ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TX_HASH = "0x" + "ab" * 32


def _settings(tmp_path: Path, **overrides) -> ForgeSettings:
    values = dict(rpc_url="http://127.0.0.1:8545", private_key=PRIVATE_KEY, artifacts_dir=tmp_path / "out")
    values.update(overrides)
    return ForgeSettings(**values)


def _create_output() -> str:
    return json.dumps({"deployer": "0xf39F", "deployedTo": ADDRESS, "transactionHash": TX_HASH})


def test_settings_require_rpc_url(tmp_path) -> None:
    with pytest.raises(ConfigurationException, match="RPC URL"):
        _settings(tmp_path, rpc_url="")


def test_settings_require_exactly_one_signer(tmp_path) -> None:
    with pytest.raises(ConfigurationException, match="exactly one"):
        _settings(tmp_path, private_key=None)
    with pytest.raises(ConfigurationException, match="exactly one"):
        _settings(tmp_path, account="deployer")


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("NFTDEPLOY_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("NFTDEPLOY_ACCOUNT", "deployer")
    monkeypatch.delenv("NFTDEPLOY_PRIVATE_KEY", raising=False)
    monkeypatch.setenv("NFTDEPLOY_CONTRACTS_DIR", "contracts")
    monkeypatch.delenv("NFTDEPLOY_ARTIFACTS_DIR", raising=False)

    settings = ForgeSettings.from_env()

    assert settings.rpc_url == "https://rpc.example"
    assert settings.account == "deployer"
    assert settings.private_key is None
    assert settings.contracts_dir == "contracts"
    assert settings.artifacts_dir == Path("out")


def test_format_constructor_arg() -> None:
    assert format_constructor_arg(True) == "true"
    assert format_constructor_arg(False) == "false"
    assert format_constructor_arg(1648739423) == "1648739423"
    assert format_constructor_arg(".json") == ".json"


def test_nft_creator_migration_runs_forge_create(tmp_path) -> None:
    calls: list[list[str]] = []

    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        calls.append(cmd)
        return completed(args=cmd, returncode=0, stdout=_create_output())

    write_foundry_artifact(tmp_path / "out")
    deployer = ForgeDeployer(_settings(tmp_path), runner=runner)
    nft_creator.migrate(deployer)

    assert len(calls) == 1
    cmd = calls[0]
    assert cmd[:3] == ["forge", "create", "src/GenNFT.sol:GenNFT"]
    assert cmd[cmd.index("--rpc-url") + 1] == "http://127.0.0.1:8545"
    assert cmd[cmd.index("--private-key") + 1] == PRIVATE_KEY
    assert "--broadcast" in cmd
    assert "--json" in cmd
    args = cmd[cmd.index("--constructor-args") + 1:]
    assert args == [
        "20",
        "1",
        "50",
        "1648739423",
        "1648739423",
        "https://gateway.pinata.cloud/ipfs/QmTNpSVs3MhWKYPUf47UsCK5yc96JwExZkVf3KyuRtQAKz",
        "https://gateway.pinata.cloud/ipfs/QmSVyoTFpi9jepZke4pMtuCm5dWY71fJka5qPJ2qkqwgvW/",
        ".json",
        "false",
        "true",
    ]

    [result] = deployer.results
    assert result.address == ADDRESS
    assert result.transaction_hash == TX_HASH
    assert result.constructor_args == nft_creator.GEN_NFT_PARAMS.constructor_args()


def test_keystore_account_is_passed_instead_of_private_key(tmp_path) -> None:
    calls: list[list[str]] = []

    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        calls.append(cmd)
        return completed(args=cmd, returncode=0, stdout=_create_output())

    deployer = ForgeDeployer(_settings(tmp_path, private_key=None, account="deployer"), runner=runner)
    deployer.deploy("GenNFT", 1)

    assert calls[0][calls[0].index("--account") + 1] == "deployer"
    assert "--private-key" not in calls[0]


def test_output_with_leading_compiler_chatter_is_parsed(tmp_path) -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        stdout = "No files changed, compilation skipped\n" + _create_output() + "\n"
        return completed(args=cmd, returncode=0, stdout=stdout)

    result = ForgeDeployer(_settings(tmp_path), runner=runner).deploy("GenNFT")

    assert result.address == ADDRESS
    assert result.constructor_args == ()


def test_unparseable_output_raises_value_error(tmp_path) -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(args=cmd, returncode=0, stdout="Deployed somewhere")

    with pytest.raises(ValueError, match="Invalid JSON from forge create"):
        ForgeDeployer(_settings(tmp_path), runner=runner).deploy("GenNFT")


def test_argument_mismatch_is_caught_before_running_forge(tmp_path) -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        raise AssertionError(f"unexpected command: {cmd}")

    write_foundry_artifact(tmp_path / "out")
    deployer = ForgeDeployer(_settings(tmp_path), runner=runner)

    with pytest.raises(ConstructorArgumentsException):
        deployer.deploy("GenNFT", 20, 1)
    assert deployer.results == []


def test_forge_failure_is_classified_and_hides_private_key(tmp_path) -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(args=cmd, returncode=1, stderr="Error: error sending request for url (http://127.0.0.1:8545/)")

    deployer = ForgeDeployer(_settings(tmp_path), runner=runner)
    with pytest.raises(AdapterCommandError) as exc_info:
        nft_creator.migrate(deployer)

    assert exc_info.value.retryable is True
    assert PRIVATE_KEY not in str(exc_info.value)
    assert "--private-key ***" in str(exc_info.value)
    assert deployer.results == []


def test_reverted_deploy_is_fatal(tmp_path) -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        return completed(args=cmd, returncode=1, stderr="Error: execution reverted")

    with pytest.raises(AdapterCommandError) as exc_info:
        ForgeDeployer(_settings(tmp_path), runner=runner).deploy("GenNFT")
    assert exc_info.value.category == "fatal"


def test_float_argument_is_rejected_before_running_forge(tmp_path) -> None:
    def runner(cmd: list[str]) -> subprocess.CompletedProcess[str]:
        raise AssertionError(f"unexpected command: {cmd}")

    write_foundry_artifact(tmp_path / "out")
    deployer = ForgeDeployer(_settings(tmp_path), runner=runner)
    args = list(nft_creator.GEN_NFT_PARAMS.constructor_args())
    args[0] = 20.0

    with pytest.raises(ConstructorArgumentsException):
        deployer.deploy("GenNFT", *args)
    assert deployer.results == []
