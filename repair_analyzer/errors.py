"""
에러 분류

InputError / AuthError / QuotaError / ImageFetchError 만 호출자에게 전달된다.
UpstreamModelError 는 스테이지 내부에서 fallback 으로 대체되고,
PersistenceError 는 로그만 남기고 결과는 그대로 반환한다.
"""


class RepairAssistantError(Exception):
    """기본 에러"""
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(RepairAssistantError):
    """요청 필드 누락 / 형식 오류"""
    status_code = 400
    error_code = "invalid_input"


class AuthError(RepairAssistantError):
    """Bearer 토큰 누락 / 검증 실패"""
    status_code = 401
    error_code = "unauthorized"


class QuotaError(RepairAssistantError):
    """일일 스캔 한도 초과"""
    status_code = 403
    error_code = "scan_limit_exceeded"

    def __init__(self, message: str, remaining: int = 0):
        super().__init__(message)
        self.remaining = remaining


class ImageFetchError(RepairAssistantError):
    """요청의 이미지를 하나도 가져오지 못함"""
    status_code = 422
    error_code = "image_fetch_failed"


class UpstreamModelError(RepairAssistantError):
    """LLM 호출 실패 (네트워크, 타임아웃, 비정상 응답)"""
    status_code = 502
    error_code = "upstream_model_error"


class PersistenceError(RepairAssistantError):
    """DB 쓰기 실패"""
    status_code = 500
    error_code = "persistence_error"


UPGRADE_MESSAGE = "Scan limit exceeded. Please upgrade to premium for unlimited scans."
