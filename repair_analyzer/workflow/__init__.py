from .state import DiagnosisState
from .graph import create_diagnosis_workflow, compile_workflow, initial_state, run_diagnosis
from .nodes import (
    SOURCE_DATABASE,
    SOURCE_VISION,
    SOURCE_SEARCH_OPENAI,
    SOURCE_SEARCH_GEMINI,
    SOURCE_FALLBACK,
    DiagnosisDependencies,
    build_dependencies,
)

__all__ = [
    "DiagnosisState",
    "create_diagnosis_workflow",
    "compile_workflow",
    "initial_state",
    "run_diagnosis",
    "SOURCE_DATABASE",
    "SOURCE_VISION",
    "SOURCE_SEARCH_OPENAI",
    "SOURCE_SEARCH_GEMINI",
    "SOURCE_FALLBACK",
    "DiagnosisDependencies",
    "build_dependencies",
]
