"""Model and vendor listing routes."""

import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from ..models.catalog import (
    ModelInfo,
    ModelListResponse,
    ModelRecord,
    VendorInfo,
    VendorListResponse,
)
from ..services.container import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Models"])


def _to_model_info(model: ModelRecord, vendors: Dict[int, VendorInfo]) -> ModelInfo:
    return ModelInfo(
        id=model.id,
        api_name=model.api_name,
        name=model.name,
        api_vendor=vendors.get(model.api_vendor_id),
        is_vision=model.is_vision,
        is_image_generation=model.is_image_generation,
        is_thinking=model.is_thinking,
        is_web_search=model.is_web_search,
        paid_only=model.paid_only,
    )


async def _vendor_map(services: Services) -> Dict[int, VendorInfo]:
    vendors = await services.vendors.find_all()
    return {v.id: VendorInfo(id=v.id, name=v.name) for v in vendors}


@router.get("/models", response_model=ModelListResponse, response_model_by_alias=True)
async def list_models(services: Services = Depends(get_services)):
    """List all models with their vendor."""
    vendors = await _vendor_map(services)
    models = await services.models.find_all()
    return ModelListResponse(data=[_to_model_info(m, vendors) for m in models])


@router.get("/models/{model_id}", response_model=ModelInfo, response_model_by_alias=True)
async def get_model(model_id: int, services: Services = Depends(get_services)):
    """
    Get a single model.

    Args:
        model_id: The model's database id
    """
    model = await services.models.find_by_id(model_id)
    if model is None:
        logger.warning(f"Unknown model requested: {model_id}")
        raise HTTPException(status_code=404, detail=f"Model {model_id} not found")

    vendors = await _vendor_map(services)
    return _to_model_info(model, vendors)


@router.get("/api-vendors", response_model=VendorListResponse, response_model_by_alias=True)
async def list_vendors(services: Services = Depends(get_services)):
    """List API vendors."""
    vendors = await services.vendors.find_all()
    return VendorListResponse(data=[VendorInfo(id=v.id, name=v.name) for v in vendors])
