"""
Dépendances FastAPI communes : services partagés et identité du demandeur.

L'identité est vérifiée en amont par le fournisseur d'identité, qui transmet
X-User-Id et X-User-Role. Sans en-tête, le demandeur est un invité.
"""
from typing import Optional

from fastapi import Depends, Header, Request

from app.container import Services
from app.core.errors import AccessDeniedError
from app.models import Requester, UserRole


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_requester(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Requester:
    if not x_user_id:
        return Requester()

    try:
        role = UserRole(x_user_role) if x_user_role else UserRole.guest
    except ValueError:
        role = UserRole.guest
    return Requester(user_id=x_user_id, role=role)


def require_user(requester: Requester = Depends(get_requester)) -> Requester:
    """Utilisateur identifié (quel que soit son rôle)"""
    if requester.user_id is None:
        raise AccessDeniedError("ACCESS_DENIED", "Authentication required")
    return requester


def require_dealer(requester: Requester = Depends(get_requester)) -> Requester:
    if not requester.is_dealer:
        raise AccessDeniedError("ACCESS_DENIED", "Dealer account required")
    return requester
