"""
Portfolio service — skills and showcase projects.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import PortfolioProject, Skill
from domain.errors import ConflictError, NotFoundError, ValidationError
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


# ── Skills ──────────────────────────────────────────────────────────

async def list_skills(db: AsyncSession, *, include_private: bool, category: str | None = None) -> list[Skill]:
    stmt = select(Skill)
    if not include_private:
        stmt = stmt.where(Skill.is_public == True)  # noqa: E712
    if category:
        stmt = stmt.where(Skill.category == category)
    res = await db.execute(stmt.order_by(Skill.category, Skill.level.desc(), Skill.name))
    return list(res.scalars().all())


async def create_skill(db: AsyncSession, *, fields: dict) -> Skill:
    skill = Skill(**fields)
    db.add(skill)
    await db.flush()
    return skill


async def _resolve_skills(db: AsyncSession, skill_ids: list[str]) -> list[Skill]:
    if not skill_ids:
        return []
    res = await db.execute(select(Skill).where(Skill.id.in_(skill_ids)))
    skills = list(res.scalars().all())
    missing = set(skill_ids) - {s.id for s in skills}
    if missing:
        raise ValidationError(f"Unknown skill id(s): {', '.join(sorted(missing))}", field="skillIds")
    return skills


# ── Projects ────────────────────────────────────────────────────────

async def list_projects(
    db: AsyncSession,
    *,
    include_private: bool,
    category: str | None = None,
    featured: bool | None = None,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[PortfolioProject], int]:
    stmt = select(PortfolioProject)
    if not include_private:
        stmt = stmt.where(PortfolioProject.is_public == True)  # noqa: E712
    if category:
        stmt = stmt.where(PortfolioProject.category == category)
    if featured is not None:
        stmt = stmt.where(PortfolioProject.featured == featured)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(PortfolioProject.title.ilike(pattern), PortfolioProject.description.ilike(pattern))
        )
    stmt = stmt.order_by(PortfolioProject.featured.desc(), PortfolioProject.created_at.desc())
    return await fetch_page(
        db, stmt, limit=limit, offset=offset, options=[selectinload(PortfolioProject.skills)]
    )


async def get_project(db: AsyncSession, *, project_id: str, include_private: bool = True) -> PortfolioProject:
    stmt = (
        select(PortfolioProject)
        .options(selectinload(PortfolioProject.skills))
        .where(or_(PortfolioProject.id == project_id, PortfolioProject.slug == project_id))
    )
    if not include_private:
        stmt = stmt.where(PortfolioProject.is_public == True)  # noqa: E712
    res = await db.execute(stmt)
    project = res.scalar_one_or_none()
    if not project:
        raise NotFoundError("Portfolio project", project_id)
    return project


async def _check_slug(db: AsyncSession, slug: str, *, exclude_id: str | None = None) -> None:
    stmt = select(PortfolioProject.id).where(PortfolioProject.slug == slug)
    if exclude_id:
        stmt = stmt.where(PortfolioProject.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError(f"Slug already in use: {slug}")


async def create_project(db: AsyncSession, *, fields: dict) -> PortfolioProject:
    fields = dict(fields)
    skill_ids = fields.pop("skill_ids", []) or []
    await _check_slug(db, fields["slug"])

    project = PortfolioProject(**fields)
    project.skills = await _resolve_skills(db, skill_ids)
    db.add(project)
    await db.flush()
    logger.info(f"Portfolio project created: {project.slug}")
    return project


async def update_project(db: AsyncSession, *, project_id: str, fields: dict) -> PortfolioProject:
    project = await get_project(db, project_id=project_id)
    fields = dict(fields)
    skill_ids = fields.pop("skill_ids", None)
    if fields.get("slug") and fields["slug"] != project.slug:
        await _check_slug(db, fields["slug"], exclude_id=project.id)

    for key, value in fields.items():
        setattr(project, key, value)
    if skill_ids is not None:
        project.skills = await _resolve_skills(db, skill_ids)
    project.updated_at = utcnow()
    await db.flush()
    return project


async def delete_project(db: AsyncSession, *, project_id: str) -> None:
    project = await get_project(db, project_id=project_id)
    # association rows go with the collection
    project.skills = []
    await db.flush()
    await db.delete(project)
    await db.flush()


async def record_view(db: AsyncSession, project: PortfolioProject) -> None:
    project.views = (project.views or 0) + 1
    await db.flush()
