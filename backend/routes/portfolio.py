"""
Portfolio endpoints — skills and showcase projects.

Public reads hide private entries; admins see and manage everything.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_optional_user, pagination_params, require_admin
from domain.enums import ProjectCategory
from domain.responses import dump, paginated_response, success_response
from models import ProjectCreateRequest, ProjectOut, ProjectUpdateRequest, SkillCreateRequest, SkillOut
from services import portfolio_service

logger = logging.getLogger(__name__)

skills_router = APIRouter(prefix="/skills", tags=["portfolio"])
router = APIRouter(prefix="/portfolio-projects", tags=["portfolio"])


def _is_admin(user: Optional[CurrentUser]) -> bool:
    return bool(user and user.is_admin)


# ── Skills ──────────────────────────────────────────────────────────

@skills_router.get("")
async def list_skills(
    category: Optional[str] = Query(None, max_length=100),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    skills = await portfolio_service.list_skills(db, include_private=_is_admin(user), category=category)
    return success_response(data=[dump(SkillOut.model_validate(s)) for s in skills])


@skills_router.post("", status_code=201)
async def create_skill(
    request: SkillCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    skill = await portfolio_service.create_skill(db, fields=request.model_dump())
    await db.commit()
    return success_response(data=dump(SkillOut.model_validate(skill)))


# ── Projects ────────────────────────────────────────────────────────

@router.get("")
async def list_projects(
    category: Optional[ProjectCategory] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: Pagination = Depends(pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await portfolio_service.list_projects(
        db,
        include_private=_is_admin(user),
        category=category.value if category else None,
        featured=featured,
        search=search,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(ProjectOut.model_validate(p)) for p in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Look up by id or slug. Anonymous and client views count towards `views`."""
    admin = _is_admin(user)
    project = await portfolio_service.get_project(db, project_id=project_id, include_private=admin)
    if not admin:
        await portfolio_service.record_view(db, project)
        await db.commit()
    return success_response(data=dump(ProjectOut.model_validate(project)))


@router.post("", status_code=201)
async def create_project(
    request: ProjectCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    project = await portfolio_service.create_project(db, fields=request.model_dump())
    await db.commit()
    project = await portfolio_service.get_project(db, project_id=project.id)
    return success_response(data=dump(ProjectOut.model_validate(project)))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    request: ProjectUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    project = await portfolio_service.update_project(
        db, project_id=project_id, fields=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    project = await portfolio_service.get_project(db, project_id=project.id)
    return success_response(data=dump(ProjectOut.model_validate(project)))


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await portfolio_service.delete_project(db, project_id=project_id)
    await db.commit()
    logger.info(f"Portfolio project {project_id} deleted by {admin.id}")
    return success_response(data={"id": project_id, "deleted": True})
