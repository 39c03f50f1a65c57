"""
수리 진단 API 라우터

각 스테이지는 독립적으로 호출 가능한 POST 엔드포인트 (OPTIONS 는 CORS preflight 에 {} 응답)
응답: {success: true, ...문서, usedFallback}

POST /api/v1/repair/analyze-image              - 이미지 분석 (스캔 차감)
POST /api/v1/repair/analyze-description        - 증상 설명 분석
POST /api/v1/repair/generate-device-questions  - 기기 기반 질문 5개
POST /api/v1/repair/generate-questions         - 분석 기반 추가 질문 3-6개
POST /api/v1/repair/final-diagnosis            - 최종 진단
POST /api/v1/repair/final-report               - 수리 리포트 (deprecated, 스캔 차감)
POST /api/v1/repair/generate-alternatives      - 대안 해결책
POST /api/v1/repair/web-search                 - 웹 검색 (+ 요약)
POST /api/v1/repair/analyze-code-problem       - 코드 / 회로도 문제 질문 (스캔 차감)
POST /api/v1/repair/translate                  - 번역
POST /api/v1/repair/match-database             - 참조 DB 매칭
POST /api/v1/repair/repair-guidance             - 분석 결과 기반 수리 안내
POST /api/v1/repair/identify-components        - 부품 사진 식별 (스캔 차감)
POST /api/v1/repair/diagnose                   - 세션 진단 오케스트레이터 (스캔 차감)
POST /api/v1/repair/scan-quota                 - 남은 스캔 횟수 조회
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends
from langchain_core.language_models.chat_models import BaseChatModel

from auth import require_auth
from ..config import Settings, get_settings
from ..db_matcher import DatabaseMatcher, terms_from_text
from ..quota import ScanQuotaGate, get_quota_gate
from ..sessions import SessionStore, get_session_store
from ..stages import (
    AlternativeSolutionGenerator,
    CodeProblemAnalyzer,
    ComponentIdentifier,
    DescriptionAnalyzer,
    DeviceQuestionGenerator,
    FinalDiagnosisGenerator,
    FollowUpQuestionGenerator,
    ImageAnalyzer,
    RepairGuidanceGenerator,
    RepairReportGenerator,
    Translator,
    WebSearcher,
    load_request_images,
)
from ..stages.models import (
    AlternativesRequest,
    CodeProblemRequest,
    DescriptionAnalysisRequest,
    DeviceQuestionsRequest,
    DiagnoseRequest,
    DiagnosisContextRequest,
    FollowUpQuestionsRequest,
    IdentifyComponentsRequest,
    ImageAnalysisRequest,
    MatchDatabaseRequest,
    RepairGuidanceRequest,
    TranslateRequest,
    WebSearchRequest,
)
from ..workflow import SOURCE_FALLBACK, build_dependencies, run_diagnosis

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/v1/repair", tags=["repair"])


# ============================================================
# Dependencies (테스트에서 app.dependency_overrides 로 교체)
# ============================================================
def get_stage_llm() -> Optional[BaseChatModel]:
    """스테이지에 주입할 모델 (None 이면 설정값으로 생성)"""
    return None


def get_http_client() -> Optional[httpx.AsyncClient]:
    """이미지 / 검색용 HTTP 클라이언트 (None 이면 요청마다 생성)"""
    return None


def get_supabase() -> Any:
    """참조 테이블 조회용 Supabase 클라이언트"""
    from supabase_client import get_supabase_client
    return get_supabase_client()


def _context(request: DiagnosisContextRequest) -> Dict[str, Any]:
    return {
        "device_category": request.device_category,
        "description": request.description,
        "image_analysis": request.image_analysis,
        "description_analysis": request.description_analysis,
        "questions": request.questions,
        "answers": request.answers,
    }


# ============================================================
# CORS preflight
# ============================================================
@router.options("/{path:path}")
async def preflight(path: str):
    return {}


# ============================================================
# Stage Endpoints
# ============================================================
@router.post("/analyze-image")
async def analyze_image(
    request: ImageAnalysisRequest,
    user_id: str = Depends(require_auth),
    gate: ScanQuotaGate = Depends(get_quota_gate),
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """
    기기 사진 분석 (스캔 1회 차감)

    Returns:
        problems[], visualObservations, clarifyingQuestions[5]
    """
    images = await load_request_images(request.image_urls, request.images_base64, settings, http_client)
    await gate.consume(user_id)

    analyzer = ImageAnalyzer(language=request.language, llm=llm, settings=settings)
    result = await analyzer.analyze(images, request.device_category)
    return result.to_response()


@router.post("/analyze-description")
async def analyze_description(
    request: DescriptionAnalysisRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """증상 설명 분석 - prioritizedProblems, matchedKeywords, analysisNotes"""
    analyzer = DescriptionAnalyzer(language=request.language, llm=llm, settings=settings)
    result = await analyzer.analyze(
        request.description,
        device_name=request.device_name,
        device_category=request.device_category,
        image_analysis=request.image_analysis,
    )
    return result.to_response()


@router.post("/generate-device-questions")
async def generate_device_questions(
    request: DeviceQuestionsRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """기기 이름 + 증상 기반 질문 정확히 5개"""
    generator = DeviceQuestionGenerator(language=request.language, llm=llm, settings=settings)
    result = await generator.generate(request.device_name, request.description, request.image_base64)
    return result.to_response()


@router.post("/generate-questions")
async def generate_questions(
    request: FollowUpQuestionsRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """분석 결과 기반 추가 질문 3-6개"""
    generator = FollowUpQuestionGenerator(language=request.language, llm=llm, settings=settings)
    result = await generator.generate(
        request.description,
        device_name=request.device_name,
        device_category=request.device_category,
        image_analysis=request.image_analysis,
        description_analysis=request.description_analysis,
    )
    return result.to_response()


@router.post("/final-diagnosis")
async def final_diagnosis(
    request: DiagnosisContextRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """
    최종 진단

    Returns:
        problem, detailedRepairSteps[>=3], safetyTips[>=3]
    """
    generator = FinalDiagnosisGenerator(language=request.language, llm=llm, settings=settings)
    result = await generator.generate(request.device_name, **_context(request))
    return result.to_response()


@router.post("/final-report", deprecated=True)
async def final_report(
    request: DiagnosisContextRequest,
    user_id: str = Depends(require_auth),
    gate: ScanQuotaGate = Depends(get_quota_gate),
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """
    수리 리포트 (구 형태, 스캔 1회 차감)

    Returns:
        problemWithReason{problem, reason}, repairStepsWithSafety[], toolsNeeded[]
    """
    await gate.consume(user_id)

    generator = RepairReportGenerator(language=request.language, llm=llm, settings=settings)
    result = await generator.generate(request.device_name, **_context(request))
    return result.to_response()


@router.post("/generate-alternatives")
async def generate_alternatives(
    request: AlternativesRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """거절된 해결책 + 같은 컨텍스트로 순위가 매겨진 대안 가설"""
    generator = AlternativeSolutionGenerator(language=request.language, llm=llm, settings=settings)
    result = await generator.generate(
        request.device_name,
        rejected_problem=request.current_solution.problem,
        rejected_steps=request.current_solution.steps,
        feedback=request.feedback,
        **_context(request),
    )
    return result.to_response()


@router.post("/web-search")
async def web_search(
    request: WebSearchRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """웹 검색 (키가 없으면 고정 결과) + 선택적 요약"""
    searcher = WebSearcher(language=request.language, llm=llm, settings=settings, http_client=http_client)
    result = await searcher.run(
        request.device_category,
        ai_analysis=request.ai_analysis,
        symptoms_text=request.symptoms_text,
        summarize=request.summarize,
    )
    return result.to_response()


@router.post("/analyze-code-problem")
async def analyze_code_problem(
    request: CodeProblemRequest,
    user_id: str = Depends(require_auth),
    gate: ScanQuotaGate = Depends(get_quota_gate),
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """코드 / 회로도 문제 확인 질문 3-5개 (스캔 1회 차감)"""
    await gate.consume(user_id)

    analyzer = CodeProblemAnalyzer(language=request.language, llm=llm, settings=settings)
    result = await analyzer.analyze(request.description, request.files)
    return result.to_response()


@router.post("/translate")
async def translate(
    request: TranslateRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """단건 / 일괄 번역 (실패한 항목은 원문)"""
    translator = Translator(llm=llm, settings=settings)
    result = await translator.run(
        request.from_language,
        request.to_language,
        text=request.text,
        texts=request.texts,
        context=request.context,
    )
    return result.to_response()


@router.post("/match-database")
async def match_database(
    request: MatchDatabaseRequest,
    supabase: Any = Depends(get_supabase),
):
    """참조 DB 키워드 매칭 (상위 5개)"""
    matches = await DatabaseMatcher().match_category(
        request.device_category,
        ai_analysis=request.ai_analysis,
        extra_terms=terms_from_text(request.symptoms_text),
        supabase=supabase,
    )
    return {
        "success": True,
        "matches": [m.to_response() for m in matches],
        "usedFallback": False,
    }


@router.post("/repair-guidance", dependencies=[Depends(require_auth)])
async def repair_guidance(
    request: RepairGuidanceRequest,
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    settings: Settings = Depends(get_settings),
):
    """
    분석 결과 + DB 매칭 기반 수리 안내

    Returns:
        steps, tools, estimatedCost, difficulty (+ diagnosis, safetyWarnings ...)
    """
    generator = RepairGuidanceGenerator(language=request.language, llm=llm, settings=settings)
    result = await generator.generate(
        request.ai_analysis,
        request.device_category,
        symptoms_text=request.symptoms_text,
        database_matches=request.database_matches,
    )
    return result.to_response()


@router.post("/identify-components")
async def identify_components(
    request: IdentifyComponentsRequest,
    user_id: str = Depends(require_auth),
    gate: ScanQuotaGate = Depends(get_quota_gate),
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """부품 사진 한 장 식별 (스캔 1회 차감) - overallSuggestion, components[]"""
    images = await load_request_images(
        [request.image_url] if request.image_url else [],
        [request.image_base64] if request.image_base64 else [],
        settings,
        http_client,
    )
    await gate.consume(user_id)

    identifier = ComponentIdentifier(language=request.language, llm=llm, settings=settings)
    result = await identifier.identify(images, request.device_name)
    return result.to_response()


@router.post("/diagnose")
async def diagnose(
    request: DiagnoseRequest,
    user_id: str = Depends(require_auth),
    gate: ScanQuotaGate = Depends(get_quota_gate),
    sessions: SessionStore = Depends(get_session_store),
    llm: Optional[BaseChatModel] = Depends(get_stage_llm),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    supabase: Any = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
):
    """
    세션 진단 (스캔 1회 차감)

    DB → Vision → 웹 검색 + 합성 → 고정 fallback 순서로 시도하며,
    어떤 단계가 실패해도 status=completed 와 분석 결과를 반환한다.
    """
    await gate.consume(user_id)

    deps = build_dependencies(
        language=request.language,
        settings=settings,
        llm=llm,
        sessions=sessions,
        http_client=http_client,
        supabase=supabase,
    )
    result = await run_diagnosis(
        deps,
        session_id=request.session_id,
        image_urls=request.image_urls,
        symptoms_text=request.symptoms_text,
        device_category=request.device_category,
        user_id=user_id,
        language=request.language,
    )
    return {"success": True, **result, "usedFallback": result["source"] == SOURCE_FALLBACK}


@router.post("/scan-quota")
async def scan_quota(
    user_id: str = Depends(require_auth),
    gate: ScanQuotaGate = Depends(get_quota_gate),
):
    """남은 스캔 횟수 조회 (차감 없음, 프리미엄은 -1)"""
    decision = await gate.status(user_id)
    return {
        "success": True,
        "canScan": decision.allowed,
        "remainingScans": decision.remaining,
        "isPremium": decision.is_premium,
        "dailyLimit": gate.daily_limit,
    }
