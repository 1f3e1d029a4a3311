"""
Shared building blocks for the chat and social apps.

    core.models      BaseModel (created_at / updated_at)
    core.services    BaseService, ServiceResult
    core.exceptions  BaseApplicationError and its subclasses
    core.views       health_check
"""
