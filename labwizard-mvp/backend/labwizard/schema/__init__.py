from .base import BaseFormSchema
from .factory import get_form_schema
from .types import FieldDescriptor, FieldType, NotificationRule, StepDefinition
from .variants import ServiceVariant, resolve_variant

__all__ = [
    "BaseFormSchema",
    "FieldDescriptor",
    "FieldType",
    "NotificationRule",
    "ServiceVariant",
    "StepDefinition",
    "get_form_schema",
    "resolve_variant",
]
