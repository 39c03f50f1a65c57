"""
진단 파이프라인 데이터 모델

요청 모델은 camelCase JSON 을 받고, 응답 문서는 모델이 돌려준 추가 필드를 그대로 보존한다.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..llm.language import validate_language

# 공백만 있는 문자열은 누락으로 취급
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Confidence(str, Enum):
    """신뢰도"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QuestionCategory(str, Enum):
    """질문 카테고리"""
    POWER = "Power"
    PERFORMANCE = "Performance"
    PHYSICAL = "Physical"
    AUDIO = "Audio"
    DISPLAY = "Display"
    CONNECTION = "Connection"
    USAGE = "Usage"
    ENVIRONMENT = "Environment"


class SessionStatus(str, Enum):
    """진단 세션 상태 (failed 없음)"""
    PENDING = "pending"
    COMPLETED = "completed"


class DeviceCategory(str, Enum):
    """참조 DB 카테고리"""
    DEVICE = "device"
    INSTRUMENT = "instrument"
    COMPONENT = "component"
    PCB = "pcb"
    BOARD = "board"


class StageDocument(BaseModel):
    """스테이지 출력 문서 (정의되지 않은 필드도 보존)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class StageRequest(BaseModel):
    """스테이지 요청 공통"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    language: str = Field("en", description="응답 언어 (ISO-639-1, 미지원 코드는 en)")

    @field_validator("language", mode="before")
    @classmethod
    def _normalize_language(cls, value: Any) -> str:
        return validate_language(value if isinstance(value, str) else "en")


# ============================================================
# Stage Output Documents
# ============================================================
class ProblemHypothesis(StageDocument):
    """후보 문제"""
    label: str
    reasoning: str
    confidence: Confidence


class ImageAnalysisResult(StageDocument):
    """이미지 분석 결과"""
    problems: List[ProblemHypothesis]
    visual_observations: str
    clarifying_questions: List[str]


class DescriptionAnalysisResult(StageDocument):
    """증상 설명 분석 결과"""
    prioritized_problems: List[str]
    matched_keywords: List[str]
    analysis_notes: str


class Question(StageDocument):
    """확인 질문"""
    id: str
    category: QuestionCategory
    question: str


class QuestionSet(StageDocument):
    questions: List[Question]


class FinalDiagnosis(StageDocument):
    """최종 진단 (기본 형태)"""
    problem: str
    detailed_repair_steps: List[str]
    safety_tips: List[str]


class ProblemWithReason(StageDocument):
    problem: str
    reason: str


class RepairReport(StageDocument):
    """수리 리포트 (구 형태, deprecated)"""
    problem_with_reason: ProblemWithReason
    repair_steps_with_safety: List[str]
    tools_needed: List[str]


class AlternativeSolution(StageDocument):
    """대안 가설"""
    rank: int
    cause: str
    reasoning: str
    steps: List[str]
    tools_needed: List[str]


class AlternativesResult(StageDocument):
    alternatives: List[AlternativeSolution]
    when_to_seek_professional: str


class CodeProblemQuestions(StageDocument):
    questions: List[str]


class IdentifiedComponent(StageDocument):
    name: str


class ComponentIdentification(StageDocument):
    """부품 식별 결과 (overallSuggestion 은 마크다운 요약)"""
    overall_suggestion: str
    components: List[IdentifiedComponent]


class TranslationResult(StageDocument):
    """번역 결과 (단건 / 일괄)"""
    translated_text: Optional[str] = None
    translations: List[str] = Field(default_factory=list)
    from_language: str = "en"
    to_language: str = "en"


class SearchResultItem(StageDocument):
    """검색 결과 항목"""
    title: str
    link: str
    snippet: str = ""
    display_link: str = ""
    formatted_url: str = ""


class WebSearchResult(StageDocument):
    """웹 검색 결과"""
    query: str
    source: str
    results: List[SearchResultItem]
    total_results: int = 0
    solution: Optional[str] = None
    search_query: Optional[str] = None


class MatchedField(StageDocument):
    field: str
    term: str


class DatabaseMatch(StageDocument):
    """점수가 매겨진 참조 레코드"""
    record: Dict[str, Any]
    confidence: float
    matched_fields: List[MatchedField]
    table_name: str


class DiagnosisAnalysis(StageDocument):
    """오케스트레이터 분석 결과"""
    visual_analysis: str
    likely_problems: List[str]
    confidence: Confidence
    confirmation_questions: List[str]


class RepairGuidance(StageDocument):
    """오케스트레이터 수리 안내"""
    steps: str
    tools: str
    estimated_cost: str
    difficulty: str


# ============================================================
# Request Models
# ============================================================
class ImageAnalysisRequest(StageRequest):
    """이미지 분석 요청 (URL 또는 base64)"""
    image_urls: List[str] = Field(default_factory=list, description="이미지 URL 목록")
    images_base64: List[str] = Field(default_factory=list, description="base64 이미지 (data URL 허용)")
    device_category: RequiredText = Field(..., description="기기 카테고리 (예: laptop, device, pcb)")

    @model_validator(mode="after")
    def _require_image(self):
        if not any(u.strip() for u in self.image_urls) and not any(b.strip() for b in self.images_base64):
            raise ValueError("imageUrls or imagesBase64 is required")
        return self


class DescriptionAnalysisRequest(StageRequest):
    """증상 설명 분석 요청"""
    description: RequiredText
    device_name: Optional[str] = None
    device_category: Optional[str] = None
    image_analysis: Optional[Dict[str, Any]] = None


class DeviceQuestionsRequest(StageRequest):
    """기기 이름 + 증상 기반 질문 생성 요청 (5개 고정)"""
    device_name: RequiredText
    description: RequiredText
    image_base64: Optional[str] = None


class FollowUpQuestionsRequest(StageRequest):
    """분석 결과 기반 추가 질문 생성 요청 (3-6개)"""
    description: RequiredText
    device_name: Optional[str] = None
    device_category: Optional[str] = None
    image_analysis: Optional[Dict[str, Any]] = None
    description_analysis: Optional[Dict[str, Any]] = None


class DiagnosisContextRequest(StageRequest):
    """최종 진단 / 리포트 요청 (누적된 세션 컨텍스트)"""
    device_name: RequiredText
    device_category: Optional[str] = None
    description: Optional[str] = None
    image_analysis: Optional[Dict[str, Any]] = None
    description_analysis: Optional[Dict[str, Any]] = None
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    answers: Dict[str, str] = Field(default_factory=dict, description="질문 id -> 답변")


class CurrentSolution(BaseModel):
    """사용자가 시도했지만 효과가 없었던 해결책"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    problem: RequiredText
    steps: List[str] = Field(default_factory=list)


class AlternativesRequest(DiagnosisContextRequest):
    """대안 해결책 요청"""
    current_solution: CurrentSolution
    feedback: Optional[str] = Field(None, description="해결책이 왜 효과가 없었는지")


class WebSearchRequest(StageRequest):
    """웹 검색 요청"""
    device_category: RequiredText
    ai_analysis: Optional[Dict[str, Any]] = None
    symptoms_text: Optional[str] = None
    summarize: bool = Field(False, description="검색 결과로 수리 방법 요약 생성")


class CodeFile(BaseModel):
    name: str = "snippet"
    content: str = ""


class CodeProblemRequest(StageRequest):
    """코드 / 회로도 문제 분석 요청"""
    description: RequiredText
    files: List[CodeFile] = Field(default_factory=list)


class TranslateRequest(StageRequest):
    """번역 요청 (text 또는 texts)"""
    text: Optional[str] = None
    texts: List[str] = Field(default_factory=list)
    from_language: str = "en"
    to_language: RequiredText
    context: str = Field("ai_response", description="user_input | ai_response")

    @model_validator(mode="after")
    def _require_text(self):
        if not (self.text and self.text.strip()) and not self.texts:
            raise ValueError("text or texts is required")
        return self


class MatchDatabaseRequest(StageRequest):
    """참조 DB 매칭 요청"""
    device_category: RequiredText
    ai_analysis: Dict[str, Any] = Field(default_factory=dict)
    symptoms_text: Optional[str] = None


class DiagnoseRequest(StageRequest):
    """세션 진단 요청 (오케스트레이터)"""
    session_id: RequiredText
    image_urls: List[str] = Field(..., min_length=1)
    symptoms_text: str = ""
    device_category: str = DeviceCategory.DEVICE.value


class RepairGuidanceRequest(StageRequest):
    """수리 안내 생성 요청 (분석 결과 + DB 매칭)"""
    ai_analysis: Dict[str, Any] = Field(..., min_length=1)
    device_category: RequiredText
    database_matches: List[Dict[str, Any]] = Field(default_factory=list)
    symptoms_text: Optional[str] = None


class IdentifyComponentsRequest(StageRequest):
    """부품 사진 식별 요청"""
    image_base64: Optional[str] = None
    image_url: Optional[str] = None
    device_name: Optional[str] = None

    @model_validator(mode="after")
    def _require_image(self):
        if not (self.image_base64 and self.image_base64.strip()) and not (self.image_url and self.image_url.strip()):
            raise ValueError("imageBase64 or imageUrl is required")
        return self
