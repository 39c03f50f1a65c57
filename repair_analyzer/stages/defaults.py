"""
스테이지별 기본값 / fallback 문서

- 필드 기본값: 해당 필드만 누락되었을 때 대체 (필드 단위 복구)
- FALLBACK_*: 모델 호출 자체가 실패했을 때 응답 전체를 대체
"""
from typing import Any, Dict, List

ASSESSMENT_PENDING = "Assessment pending"

# ============================================================
# Image Analysis
# ============================================================
DEFAULT_IMAGE_PROBLEM: Dict[str, str] = {
    "label": "Hardware component issue",
    "reasoning": "Based on the image, there appears to be a hardware-related problem",
    "confidence": "medium",
}

DEFAULT_IMAGE_QUESTIONS: List[str] = [
    "What specific symptoms are you experiencing?",
    "When did this problem first start?",
    "Does the device power on at all?",
    "Are there any unusual sounds or smells?",
    "Have you tried any troubleshooting steps?",
]


def default_visual_observations(device_category: str) -> str:
    return f"I can see your {device_category or 'device'} in the provided images."


FALLBACK_IMAGE_ANALYSIS: Dict[str, Any] = {
    "problems": [
        {
            "label": "Hardware malfunction",
            "reasoning": "Unable to fully analyze the image, but I can still help with diagnosis",
            "confidence": "low",
        }
    ],
    "visualObservations": "Image processing encountered an issue, but diagnosis can continue",
    "clarifyingQuestions": [
        "What specific problem are you experiencing?",
        "When did the issue first occur?",
        "Does the device show any signs of power?",
        "Are there any visible damage or unusual behavior?",
        "What were you doing when the problem started?",
    ],
}

# ============================================================
# Description Analysis
# ============================================================
DEFAULT_PRIORITIZED_PROBLEMS: List[str] = [
    "Diagnostic needed",
    "Component check required",
    "Further analysis needed",
]
DEFAULT_MATCHED_KEYWORDS: List[str] = ["general", "issue", "problem"]
DEFAULT_ANALYSIS_NOTES = "Analysis completed based on user description"

FALLBACK_DESCRIPTION_ANALYSIS: Dict[str, Any] = {
    "prioritizedProblems": ["Issue based on description"] + DEFAULT_PRIORITIZED_PROBLEMS[1:],
    "matchedKeywords": ["user reported problem"],
    "analysisNotes": "Fallback analysis completed - please provide more details if possible",
}

# ============================================================
# Questions
# ============================================================
DEFAULT_DEVICE_QUESTIONS: List[Dict[str, str]] = [
    {"id": "q1", "category": "Usage", "question": "When did you first notice this problem?"},
    {"id": "q2", "category": "Usage", "question": "Does this happen every time you use the device?"},
    {"id": "q3", "category": "Power", "question": "Does the device turn on properly?"},
    {"id": "q4", "category": "Physical", "question": "Has the device been dropped or damaged recently?"},
    {"id": "q5", "category": "Environment", "question": "Where do you typically use this device?"},
]

DEFAULT_FOLLOW_UP_QUESTIONS: List[Dict[str, str]] = [
    {"id": "q1", "category": "Usage", "question": "When did you first notice this problem?"},
    {"id": "q2", "category": "Usage", "question": "Does the problem happen every time you use the device?"},
    {"id": "q3", "category": "Environment", "question": "Has the device been dropped or exposed to water recently?"},
    {"id": "q4", "category": "Power", "question": "Does the device power on and stay on?"},
    {"id": "q5", "category": "Physical", "question": "Are there any unusual sounds, smells, or visible marks?"},
]

DEFAULT_CODE_QUESTIONS: List[str] = [
    "What specific error message or symptom are you experiencing?",
    "When did this problem first start occurring?",
    "What steps have you already tried to resolve this issue?",
    "Are there any recent changes to your system or environment?",
    "Can you reproduce this problem consistently?",
]

# ============================================================
# Component Identification
# ============================================================
DEFAULT_COMPONENT_SUGGESTION = (
    "The component could not be identified from this photo. "
    "Try a closer, well-lit picture that shows any printed markings."
)

FALLBACK_COMPONENT_IDENTIFICATION: Dict[str, Any] = {
    "overallSuggestion": DEFAULT_COMPONENT_SUGGESTION,
    "components": [],
}

# ============================================================
# Final Diagnosis / Report
# ============================================================
DEFAULT_PROBLEM = "Device issue requiring professional assessment"

DEFAULT_REPAIR_STEPS: List[str] = [
    "Turn off the device completely and unplug it from power",
    "Inspect all visible connections and cables for damage",
    "Clean the device gently with appropriate cleaning materials",
    "Check for loose components or connections",
    "If problem persists, consult a professional technician",
]

DEFAULT_SAFETY_TIPS: List[str] = [
    "Always turn off and unplug the device before attempting any repairs",
    "Avoid working on electrical devices in wet conditions",
    "If you're unsure about any step, consult a professional technician",
]

DEFAULT_REPORT_PROBLEM = "Device issue identified"
DEFAULT_REPORT_REASON = "Root cause analysis needed"
DEFAULT_REPORT_STEPS: List[str] = [
    "Stop using the device and consult a professional technician for safe repair.",
]
DEFAULT_REPORT_TOOLS: List[str] = ["Professional consultation recommended"]

# ============================================================
# Alternatives
# ============================================================
ALTERNATIVE_STEP_PLACEHOLDER = "Consult a professional technician about this possible cause"

DEFAULT_SEEK_PROFESSIONAL = (
    "No alternative solutions could be generated at this time. "
    "Please consult a professional technician for further diagnosis."
)

DEFAULT_ALTERNATIVES: List[Dict[str, Any]] = [
    {
        "rank": 1,
        "cause": "Intermittent power or connection fault",
        "reasoning": "The first fix did not help, and unstable power or a loose internal connector is the next most common cause",
        "steps": [
            "Turn off the device and unplug it from power",
            "Try a different power adapter, cable, and outlet",
            "Reseat any user-accessible connectors and batteries",
            "Test the device again before reassembling completely",
        ],
        "toolsNeeded": ["Spare power cable or adapter", "Screwdriver set"],
    },
    {
        "rank": 2,
        "cause": "Internal component failure",
        "reasoning": "Symptoms that survive basic repairs often point to a failed internal part",
        "steps": [
            "Stop using the device to avoid further damage",
            "Back up any data if the device still powers on",
            "Have a technician test the internal components",
        ],
        "toolsNeeded": ["Multimeter (for technicians)"],
    },
]

# ============================================================
# Orchestrator
# ============================================================
DEFAULT_LIKELY_PROBLEMS: List[str] = ["Hardware component issue", "Connection problem"]

DEFAULT_CONFIRMATION_QUESTIONS: List[str] = [
    "What specific problem are you experiencing?",
    "When did the issue first occur?",
    "Does the device power on at all?",
    "Are there any visible signs of damage?",
    "Have you tried basic troubleshooting steps?",
]

CATEGORY_FALLBACK_PROBLEMS: Dict[str, List[str]] = {
    "device": ["Power supply failure", "Component malfunction", "Connection issue"],
    "instrument": ["Calibration error", "Sensor malfunction", "Display issue"],
    "component": ["Component failure", "Overheating", "Physical damage"],
    "pcb": ["Trace damage", "Component failure", "Short circuit"],
    "board": ["Programming issue", "Power problem", "Communication failure"],
}

FALLBACK_GUIDANCE: Dict[str, str] = {
    "steps": (
        "1. Check power connections\n"
        "2. Inspect for visible damage\n"
        "3. Try basic reset procedures\n"
        "4. Contact a technician if issues persist"
    ),
    "tools": "Basic tools, multimeter if available",
    "estimatedCost": "Varies by issue complexity",
    "difficulty": "Beginner to Intermediate",
}


def guaranteed_fallback(device_category: str) -> Dict[str, Any]:
    """어떤 단계가 실패해도 반환 가능한 분석 + 수리 안내"""
    category = device_category if device_category in CATEGORY_FALLBACK_PROBLEMS else "device"
    return {
        "analysis": {
            "visualAnalysis": (
                f"I've analyzed your {device_category or 'device'} and the symptoms you described. "
                "While I couldn't perform detailed AI analysis, I can help you with common issues."
            ),
            "likelyProblems": list(CATEGORY_FALLBACK_PROBLEMS[category]),
            "confidence": "low",
            "confirmationQuestions": list(DEFAULT_CONFIRMATION_QUESTIONS),
        },
        "guidance": dict(FALLBACK_GUIDANCE),
    }

# 분석 경로별 수리 안내 (DB 매칭은 레코드 값 사용)
VISION_GUIDANCE: Dict[str, str] = {
    "steps": "Based on the identified issues, consult a repair technician",
    "tools": "Standard repair tools",
    "estimatedCost": "Varies by issue",
    "difficulty": "Medium",
}

SEARCH_GUIDANCE: Dict[str, str] = {
    "steps": "Follow the repair guidance from search results",
    "tools": "Standard repair tools",
    "estimatedCost": "Varies",
    "difficulty": "Medium",
}

DATABASE_GUIDANCE: Dict[str, str] = {
    "steps": "Contact a technician for detailed repair",
    "tools": "Basic repair tools",
    "estimatedCost": "Varies",
    "difficulty": "Medium",
}

DATABASE_CONFIRMATION_QUESTIONS: List[str] = [
    "Does this match what you're experiencing?",
    "When did the problem start?",
    "Have you tried basic troubleshooting?",
    "Are there any visible signs of damage?",
    "Does the device power on at all?",
]

GUIDANCE_FIELDS = ("steps", "tools", "estimatedCost", "difficulty")
