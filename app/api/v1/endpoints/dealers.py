"""Routes du tableau de bord dealer"""
from fastapi import APIRouter, Depends

from app.api.deps import get_requester, get_services
from app.container import Services
from app.models import FeatureFlags, Requester

router = APIRouter()


@router.get("/me/features", response_model=FeatureFlags)
def get_feature_flags(
    requester: Requester = Depends(get_requester),
    services: Services = Depends(get_services),
):
    """Droits courants ; tout à False pour un non-dealer ou sans abonnement actif"""
    return services.quota.feature_flags(requester)
