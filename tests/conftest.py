import subprocess

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session
from typer.testing import CliRunner

from nftdeploy.db import init_db
from nftdeploy.deployer import DeployResult


class CallRecorder:
    """Deployer stand-in that remembers every deploy() call verbatim."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def deploy(self, contract_name, *args):
        self.calls.append((contract_name, *args))
        return DeployResult(contract_name=contract_name, constructor_args=tuple(args))


def completed(*, args: list[str], returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=args, returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def recorder():
    return CallRecorder()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture()
def cli_runner(tmp_path, monkeypatch):
    db_path = tmp_path / "test_cli.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    for name in (
        "NFTDEPLOY_RPC_URL",
        "NFTDEPLOY_PRIVATE_KEY",
        "NFTDEPLOY_ACCOUNT",
        "NFTDEPLOY_CONTRACTS_DIR",
        "NFTDEPLOY_ARTIFACTS_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    from nftdeploy import cli, db

    db.dispose_engine()
    yield CliRunner(), cli.app
    db.dispose_engine()
