"""Config management API endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic.alias_generators import to_camel

from refsearch.api.v1.schemas import ConfigReloadResponse, ConfigStatusRead
from refsearch.config import loaders
from refsearch.core.exceptions import ConfigurationError

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", response_model=ConfigStatusRead)
def get_config_status():
    """Get current configuration status."""
    catalog = loaders.load_reference_shots_v1()
    return ConfigStatusRead(
        version=loaders.get_config_version(),
        catalog_version=catalog.version,
        template_count=len(catalog.templates),
        scoring_weights={
            to_camel(name): weight for name, weight in loaders.load_scoring_config_v1().weights.as_dict().items()
        },
    )


@router.post("/reload", response_model=ConfigReloadResponse)
def reload_config():
    """Reload all configuration from disk and validate it eagerly."""
    loaders.clear_config_cache()
    try:
        loaders.load_all_configs()
    except ConfigurationError as exc:
        return ConfigReloadResponse(
            success=False,
            version=loaders.get_config_version(),
            message=str(exc),
        )
    return ConfigReloadResponse(
        success=True,
        version=loaders.get_config_version(),
        message="Configuration reloaded",
    )
