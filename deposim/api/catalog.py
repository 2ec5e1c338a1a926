"""Read-only catalog endpoints: providers, models and role presets."""

from fastapi import APIRouter, HTTPException

from deposim.context.role_presets import ROLES, get_preset_options
from deposim.core.providers import list_providers

router = APIRouter()


@router.get("/providers")
async def get_providers() -> dict:
    """Supported providers with their models and pricing."""
    return {"providers": [provider.model_dump() for provider in list_providers()]}


@router.get("/presets")
async def get_all_presets() -> dict:
    return {role: get_preset_options(role) for role in ROLES}


@router.get("/presets/{role}")
async def get_role_presets(role: str) -> dict:
    if role not in ROLES:
        raise HTTPException(status_code=404, detail=f"Unknown role: {role}")
    return {"role": role, "presets": get_preset_options(role)}
