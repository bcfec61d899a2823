import uuid

from fastapi import APIRouter, Body, Depends, Response

from ..services import Services
from ..validation import parse_constraint_document
from .deps import get_services
from .serializers import constraint_resource

router = APIRouter(prefix="/subscription-filter-constraints", tags=["constraints"])


@router.post("", status_code=201)
async def create_constraint(
    response: Response,
    payload: dict = Body(..., description="JSON:API subscription-filter-constraints document"),
    services: Services = Depends(get_services),
):
    subject, predicate, obj = parse_constraint_document(payload)
    constraint_id = str(uuid.uuid4())

    constraint = await services.constraints.create(constraint_id, subject, predicate, obj)
    response.headers["Location"] = f"{router.prefix}/{constraint_id}"
    return {"data": constraint_resource(constraint)}


@router.get("/{constraint_id}")
async def get_constraint(constraint_id: str, services: Services = Depends(get_services)):
    return {"data": constraint_resource(await services.constraints.get(constraint_id))}


@router.patch("/{constraint_id}")
async def replace_constraint(
    constraint_id: str,
    payload: dict = Body(..., description="JSON:API subscription-filter-constraints document"),
    services: Services = Depends(get_services),
):
    subject, predicate, obj = parse_constraint_document(payload, resource_id=constraint_id)
    constraint = await services.constraints.replace(constraint_id, subject, predicate, obj)
    return {"data": constraint_resource(constraint)}


@router.delete("/{constraint_id}", status_code=204)
async def delete_constraint(constraint_id: str, services: Services = Depends(get_services)):
    await services.constraints.delete(constraint_id)
    return Response(status_code=204)
