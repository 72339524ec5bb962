"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps. No
payment-specific logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and HTTP status
    - ValidationError, AuthError, NotFoundError, ConflictError,
      ExternalServiceError

Views (import from core.views):
    - health_check: Database liveness endpoint

Note:
    Import from submodules directly; this package does not re-export
    model classes so it can be imported before the app registry is ready.
"""
