from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from nftdeploy.deployer import DeployResult
from nftdeploy.errors import LedgerException, NotFoundException
from nftdeploy.models import DeploymentCreate, DeploymentORM, DeploymentRead

logger = logging.getLogger(__name__)


def payload_from_result(*, migration: int, network: str, result: DeployResult) -> DeploymentCreate:
    return DeploymentCreate(
        migration=migration,
        contract_name=result.contract_name,
        network=network,
        constructor_args=list(result.constructor_args),
        address=result.address,
        transaction_hash=result.transaction_hash,
    )


def record_deployment(session: Session, *, payload: DeploymentCreate) -> DeploymentRead:
    deployment = DeploymentORM.model_validate(payload.model_dump())
    session.add(deployment)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(
            "Could not record %s at %s on %s", payload.contract_name, payload.address, payload.network
        )
        raise LedgerException(f"Could not record deployment of {payload.contract_name}: {exc}") from exc
    session.refresh(deployment)
    logger.info(
        "Recorded deployment id=%s contract=%s network=%s address=%s",
        deployment.id,
        deployment.contract_name,
        deployment.network,
        deployment.address,
    )
    return DeploymentRead.model_validate(deployment)


def list_deployments(session: Session, *, network: str | None = None) -> list[DeploymentRead]:
    stmt = select(DeploymentORM).order_by(DeploymentORM.id)
    if network is not None:
        stmt = stmt.where(DeploymentORM.network == network)
    return [DeploymentRead.model_validate(d) for d in session.exec(stmt).all()]


def get_deployment(session: Session, *, deployment_id: int) -> DeploymentRead:
    if not (deployment := session.get(DeploymentORM, deployment_id)):
        raise NotFoundException("Deployment not found")
    return DeploymentRead.model_validate(deployment)
