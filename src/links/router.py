from fastapi import APIRouter, Depends, status

from auth.db import User
from auth.users import current_active_user
from links.schemas import DeleteResult, LinkCreate, LinkEnvelope, LinkList, LinkUpdate
from links.service import LinkService, get_link_service


router = APIRouter(prefix="/links", tags=["links"])


@router.get("", response_model=LinkList)
async def list_links(
    service: LinkService = Depends(get_link_service),
    user: User = Depends(current_active_user),
):
    """
    List the current user's links, newest first.
    """
    links = await service.list_links(user.id)
    return {"links": links}


@router.post("", response_model=LinkEnvelope, status_code=status.HTTP_201_CREATED)
async def create_link(
    data: LinkCreate,
    service: LinkService = Depends(get_link_service),
    user: User = Depends(current_active_user),
):
    """
    Create a new short link for the current user.
    Supports an optional custom alias and expiration date. A user may hold a
    limited number of active links at a time.
    """
    link = await service.create(
        user.id,
        data.original_url,
        custom_alias=data.custom_alias,
        expires_at=data.expires_at,
    )
    return {"link": link}


@router.patch("/{link_id}", response_model=LinkEnvelope)
async def update_link(
    link_id: int,
    data: LinkUpdate,
    service: LinkService = Depends(get_link_service),
    user: User = Depends(current_active_user),
):
    """
    Activate or deactivate a link (owner only).
    """
    link = await service.update(user.id, link_id, is_active=data.is_active)
    return {"link": link}


@router.delete("/{link_id}", response_model=DeleteResult)
async def delete_link(
    link_id: int,
    service: LinkService = Depends(get_link_service),
    user: User = Depends(current_active_user),
):
    """
    Delete a link and its recorded clicks (owner only).
    """
    await service.delete(user.id, link_id)
    return {"success": True}
