"""Background build of a deployment record: pending -> building -> deployed/failed."""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import AppError
from app.models.deployment import Deployment
from app.models.project import Project
from app.services.deployment_packager import archive, build_file_set, extract_project_code

logger = logging.getLogger(__name__)


def _log_line(lines: List[str], message: str) -> None:
    lines.append(f"[{datetime.utcnow().isoformat(timespec='seconds')}Z] {message}")


async def run_deployment(
    deployment_id: str,
    base_url: str,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> None:
    """
    Build the bundle for a pending deployment and record the outcome.

    Runs after the response has been sent, so it opens its own session.
    Clients poll the deployment record for the result.
    """
    if session_factory is None:
        from app.db.session import AsyncSessionLocal
        session_factory = AsyncSessionLocal

    async with session_factory() as db:
        deployment = await db.get(Deployment, uuid.UUID(deployment_id))
        if not deployment:
            logger.error(f"Deployment {deployment_id} not found in background task")
            return

        lines: List[str] = []
        try:
            project = await db.get(Project, deployment.project_id)
            if not project:
                raise AppError(f"Project {deployment.project_id} no longer exists")

            deployment.status = "building"
            _log_line(lines, f"Building '{project.name}' for {deployment.provider}")
            deployment.build_log = "\n".join(lines)
            await db.commit()

            file_set = build_file_set(
                extract_project_code(project.content),
                str(project.id),
                domain=deployment.domain,
                title=project.name,
            )
            _log_line(lines, f"Generated {len(file_set)} files: {', '.join(sorted(file_set))}")

            bundle = archive(file_set, project.name)
            _log_line(lines, f"Packaged {bundle.filename} ({len(bundle.content)} bytes)")

            deployment.files = dict(file_set)
            deployment.url = f"{base_url}/deployments/{deployment.id}/download"
            deployment.status = "deployed"
            project.deploy_url = deployment.url
            _log_line(lines, "Deployment ready")
            logger.info(f"Deployment {deployment.id} ready at {deployment.url}")

        except AppError as e:
            deployment.status = "failed"
            _log_line(lines, f"Build failed: {e.message}")
            logger.warning(f"Deployment {deployment.id} failed: {e.message}")

        except Exception as e:
            logger.exception(f"Unexpected error in background task for deployment {deployment_id}")
            deployment.status = "failed"
            _log_line(lines, f"Build failed: {e}")

        deployment.build_log = "\n".join(lines)
        await db.commit()
