"""ArtifactPropertyDAO: artifact_properties table operations.

Implements the gate's property store: one string value per
``(repo_key, path, name)``. Database failures surface as
:class:`PropertyStoreError`.
"""

from sqlalchemy import delete, func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vulngate.dao.base import BaseDAO
from vulngate.engines.gate.cache import PropertyStoreError
from vulngate.engines.gate.models import ArtifactKey
from vulngate.models.artifact_property import ArtifactProperty


class ArtifactPropertyDAO(BaseDAO[ArtifactProperty]):
    model = ArtifactProperty

    # ── read ──────────────────────────────────────────────────────────────

    async def get_property(
        self, session: AsyncSession, key: ArtifactKey, name: str
    ) -> str | None:
        try:
            row = await self.get_by_field(
                session, repo_key=key.repo_key, path=key.path, name=name
            )
        except SQLAlchemyError as exc:
            raise PropertyStoreError(f"cannot read {name} of '{key}': {exc}") from exc
        return row.value if row is not None else None

    # ── write ─────────────────────────────────────────────────────────────

    async def set_property(
        self, session: AsyncSession, key: ArtifactKey, name: str, value: str
    ) -> None:
        """Insert or overwrite one property (last write wins)."""
        stmt = (
            insert(ArtifactProperty)
            .values(repo_key=key.repo_key, path=key.path, name=name, value=value)
            .on_conflict_do_update(
                index_elements=["repo_key", "path", "name"],
                set_={"value": value, "updated_at": func.now()},
            )
        )
        try:
            await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PropertyStoreError(f"cannot write {name} of '{key}': {exc}") from exc

    async def delete_property(self, session: AsyncSession, key: ArtifactKey, name: str) -> bool:
        stmt = delete(ArtifactProperty).where(
            ArtifactProperty.repo_key == key.repo_key,
            ArtifactProperty.path == key.path,
            ArtifactProperty.name == name,
        )
        try:
            result = await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PropertyStoreError(f"cannot delete {name} of '{key}': {exc}") from exc
        return result.rowcount > 0
