from attendease.services.user.profile_service import UserService

__all__ = ["UserService"]
