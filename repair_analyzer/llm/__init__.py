from .client import (
    MODELS,
    get_llm_client,
    get_llm_by_model,
    get_provider,
    get_alternate_provider,
)
from .language import (
    SUPPORTED_LANGUAGES,
    LANGUAGE_NAMES,
    validate_language,
    get_language_instruction,
)

__all__ = [
    'MODELS',
    'get_llm_client',
    'get_llm_by_model',
    'get_provider',
    'get_alternate_provider',
    'SUPPORTED_LANGUAGES',
    'LANGUAGE_NAMES',
    'validate_language',
    'get_language_instruction',
]
