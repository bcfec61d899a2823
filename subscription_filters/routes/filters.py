import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response

from ..errors import NotFoundError, ValidationError
from ..models import Combinator
from ..services import Services
from ..validation import parse_filter_document
from .deps import get_services
from .serializers import filter_resource, filter_tree_document, listing_document

router = APIRouter(prefix="/subscription-filters", tags=["filters"])


@router.get("")
async def list_filters(token: Optional[str] = None, services: Services = Depends(get_services)):
    """Filters owned by the subscriber holding `token`, constraints included."""
    if not token:
        raise ValidationError.missing("query parameter", ["token"])
    listings = await services.filters.list_for_token(token)
    if listings is None:
        raise NotFoundError("Subscriber", "", detail="User not found.")
    return listing_document(listings)


@router.post("", status_code=201)
async def create_filter(
    response: Response,
    payload: dict = Body(..., description="JSON:API subscription-filters document"),
    services: Services = Depends(get_services),
):
    require_all, email, constraint_ids, sub_filter_ids = parse_filter_document(payload)
    filter_id = str(uuid.uuid4())

    node = await services.filters.create(
        filter_id,
        Combinator.from_require_all(require_all),
        constraint_ids,
        sub_filter_ids,
        email=email,
    )
    response.headers["Location"] = f"{router.prefix}/{filter_id}"
    return {"data": filter_resource(node)}


@router.get("/{filter_id}")
async def get_filter(filter_id: str, services: Services = Depends(get_services)):
    """The filter itself plus its fully expanded tree under meta.tree."""
    node = await services.filters.load_node(filter_id)
    tree = await services.filters.load_tree(filter_id)
    return filter_tree_document(node, tree)


@router.patch("/{filter_id}")
async def replace_filter(
    filter_id: str,
    payload: dict = Body(..., description="JSON:API subscription-filters document"),
    services: Services = Depends(get_services),
):
    require_all, _email, constraint_ids, sub_filter_ids = parse_filter_document(
        payload, resource_id=filter_id
    )
    node = await services.filters.replace(
        filter_id,
        Combinator.from_require_all(require_all),
        constraint_ids,
        sub_filter_ids,
    )
    return {"data": filter_resource(node)}


@router.delete("/{filter_id}", status_code=204)
async def delete_filter(filter_id: str, services: Services = Depends(get_services)):
    await services.filters.delete(filter_id)
    return Response(status_code=204)
