"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication,
connections, chat, notifications). Nothing in here knows about groups or
messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Views (import from core.views):
    - health_check: Liveness/readiness probe
    - service_error_response: Map a failed ServiceResult to an HTTP response

OpenAPI (core.openapi):
    - tag_api_endpoints: drf-spectacular postprocessing hook

Note:
    Import directly from submodules; this package does not re-export
    anything so that it can be imported before the app registry is ready.
"""
