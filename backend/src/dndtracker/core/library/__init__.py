from .conditions import DEFAULT_CONDITIONS, ConditionVocabulary
from .templates import DEFAULT_NPC_LIBRARY, NpcTemplate, TemplateLibrary

__all__ = [
    "DEFAULT_CONDITIONS",
    "DEFAULT_NPC_LIBRARY",
    "ConditionVocabulary",
    "NpcTemplate",
    "TemplateLibrary",
]
