from __future__ import annotations

import logging

import typer
import yaml
from pydantic import BaseModel
from sqlmodel import Session

from nftdeploy.db import session_scope
from nftdeploy.deployer import DeployResult, RecordingDeployer
from nftdeploy.errors import LedgerException, NftDeployException
from nftdeploy.forge_adapter import ForgeDeployer, ForgeSettings
from nftdeploy.logging_config import configure_logging, network_context
from nftdeploy.migrations import MIGRATIONS, Migration, get_migration, nft_creator, run_migration
from nftdeploy.models import DeploymentRead
from nftdeploy.proc import AdapterCommandError
from nftdeploy.services import deployments as deployment_service

configure_logging()
logger = logging.getLogger(__name__)
app = typer.Typer(help="GenNFT deployment CLI", pretty_exceptions_show_locals=False)


# sysexits EX_TEMPFAIL: the same command may succeed when re-run
EXIT_RETRYABLE = 75


def _exit_for_error(exc: Exception) -> None:
    logger.warning("CLI command failed: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    if isinstance(exc, AdapterCommandError) and exc.retryable:
        typer.echo("The provisioning failure looks transient; re-run the migration to retry.", err=True)
        raise typer.Exit(code=EXIT_RETRYABLE)
    raise typer.Exit(code=1)


def _encode(entity: object) -> object:
    if isinstance(entity, BaseModel):
        return entity.model_dump(mode="json")
    if isinstance(entity, (list, tuple)):
        return [_encode(item) for item in entity]
    return entity


def _echo_yaml_entity(entity: object) -> None:
    typer.echo(yaml.safe_dump(_encode(entity), sort_keys=False), nl=False)


def _record_results(
    session: Session,
    *,
    migration: Migration,
    network: str,
    results: list[DeployResult],
) -> list[DeploymentRead]:
    recorded = []
    for result in results:
        payload = deployment_service.payload_from_result(migration=migration.number, network=network, result=result)
        try:
            recorded.append(deployment_service.record_deployment(session, payload=payload))
        except LedgerException as e:
            typer.echo(
                f"Deployed {result.contract_name} at {result.address} (tx={result.transaction_hash}) "
                f"on {network}, but it is not in the ledger.",
                err=True,
            )
            _exit_for_error(e)
    return recorded


def _selected_migrations(number: int | None) -> tuple[Migration, ...]:
    if number is None:
        return MIGRATIONS
    return (get_migration(number),)


@app.command("show-params")
def show_params() -> None:
    _echo_yaml_entity(
        {
            "contract": nft_creator.CONTRACT_NAME,
            "constructor_args": nft_creator.GEN_NFT_PARAMS.as_ordered_dict(),
        }
    )


@app.command("list-migrations")
def list_migrations() -> None:
    _echo_yaml_entity([{"number": m.number, "name": m.name} for m in MIGRATIONS])


@app.command("migrate")
def migrate(
    migration_number: int | None = typer.Option(
        None, "--migration", help="Run only the migration with this number."
    ),
    network: str = typer.Option("development", "--network", help="Network name recorded in the ledger."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print deploy requests without running forge."),
) -> None:
    try:
        migrations = _selected_migrations(migration_number)
    except NftDeployException as e:
        _exit_for_error(e)

    if dry_run:
        deployer = RecordingDeployer()
        for migration in migrations:
            run_migration(migration, deployer)
        _echo_yaml_entity(
            [
                {"contract": r.contract_name, "constructor_args": list(r.constructor_args)}
                for r in deployer.results
            ]
        )
        return

    try:
        forge = ForgeDeployer(ForgeSettings.from_env())
    except NftDeployException as e:
        _exit_for_error(e)

    recorded: list[DeploymentRead] = []
    with network_context(network), session_scope() as session:
        for migration in migrations:
            already_done = len(forge.results)
            try:
                run_migration(migration, forge)
            except (NftDeployException, AdapterCommandError, ValueError) as e:
                # deployments that succeeded before the failure are on chain already
                _record_results(session, migration=migration, network=network, results=forge.results[already_done:])
                _exit_for_error(e)
            recorded.extend(
                _record_results(session, migration=migration, network=network, results=forge.results[already_done:])
            )
    _echo_yaml_entity(recorded)


@app.command("list-deployments")
def list_deployments(
    network: str | None = typer.Option(None, "--network", help="Only show deployments on this network."),
) -> None:
    with session_scope() as session:
        _echo_yaml_entity(deployment_service.list_deployments(session, network=network))


@app.command("get-deployment")
def get_deployment(deployment_id: int) -> None:
    with session_scope() as session:
        try:
            deployment = deployment_service.get_deployment(session, deployment_id=deployment_id)
        except NftDeployException as e:
            _exit_for_error(e)
        _echo_yaml_entity(deployment)


if __name__ == "__main__":
    app()
