from .base import BaseStage, StageResult
from .image_analyzer import ImageAnalyzer, load_request_images
from .description_analyzer import DescriptionAnalyzer
from .question_generator import DeviceQuestionGenerator, FollowUpQuestionGenerator
from .final_diagnosis import FinalDiagnosisGenerator, RepairReportGenerator
from .alternatives import AlternativeSolutionGenerator
from .code_analyzer import CodeProblemAnalyzer
from .translator import Translator
from .web_searcher import WebSearcher, build_search_query
from .session_diagnosis import VisionDiagnosis, SearchDiagnosis
from .repair_guidance import RepairGuidanceGenerator
from .component_identifier import ComponentIdentifier

__all__ = [
    "BaseStage",
    "StageResult",
    "ImageAnalyzer",
    "load_request_images",
    "DescriptionAnalyzer",
    "DeviceQuestionGenerator",
    "FollowUpQuestionGenerator",
    "FinalDiagnosisGenerator",
    "RepairReportGenerator",
    "AlternativeSolutionGenerator",
    "CodeProblemAnalyzer",
    "Translator",
    "WebSearcher",
    "build_search_query",
    "VisionDiagnosis",
    "SearchDiagnosis",
    "RepairGuidanceGenerator",
    "ComponentIdentifier",
]
