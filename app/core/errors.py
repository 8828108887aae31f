"""
Exceptions métier de l'API.

Chaque erreur porte un code stable lisible par machine, renvoyé tel quel au client.
"""
from typing import Any, Optional


class AppError(Exception):
    """Erreur applicative de base"""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        }


class NotFoundError(AppError):
    """Ressource absente ou inaccessible"""
    status_code = 404


class AccessDeniedError(AppError):
    """Violation de rôle ou de propriété"""
    status_code = 403


class QuotaExceededError(AppError):
    """Abonnement inactif ou limite d'annonces atteinte"""
    status_code = 403


class ValidationFailedError(AppError):
    """Entrée refusée par une règle métier"""
    status_code = 400


class UpstreamError(AppError):
    """Échec de la base, de Stripe ou d'un autre service externe"""
    status_code = 500


class CacheUnavailableError(Exception):
    """Le cache ne répond pas. Jamais propagé au-delà du ListingCache."""
    pass
