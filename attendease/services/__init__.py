"""
Service layer root package.

Each subpackage implements application use-cases on top of:

- SQLAlchemy models (attendease.models.*)
- Repositories (attendease.repositories.*)
- Pydantic schemas (attendease.schemas.*)
- Common service infrastructure (attendease.services.base.*)

Services take an ``AsyncSession``, return ``ServiceResult`` objects and own
the transaction boundary through ``BaseService.transaction()``.
"""
