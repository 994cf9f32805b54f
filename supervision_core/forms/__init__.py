from .form_config import FORM_SECTIONS, FormField, FormSection, all_fields, missing_required

__all__ = ["FORM_SECTIONS", "FormField", "FormSection", "all_fields", "missing_required"]
