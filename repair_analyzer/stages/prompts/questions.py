"""
질문 생성 프롬프트
"""

DEVICE_QUESTIONS_PROMPT = """Analyze the device and generate 5 targeted questions to identify the problem clearly.

Device: {device_name}
Description: {description}
{photo_section}
Please analyze:
1. Device name for common problems
2. Photo (if provided) for visible damage, losses, or missing connections
3. Description for better understanding of symptoms

Based on this analysis, generate exactly 5 questions that:
- Are specific to likely problems identified
- Help narrow down the exact issue
- Are easy for common people to answer
- Focus on symptoms, timing, and circumstances
- Avoid technical jargon

## Response Format (JSON only)
```json
{{
    "questions": [
        {{"id": "q1", "category": "Power", "question": "Simple question about power issues?"}},
        {{"id": "q2", "category": "Usage", "question": "When does this problem occur?"}}
    ]
}}
```

category must be exactly one of: {categories}

{language_instruction}
"""

FOLLOW_UP_QUESTIONS_PROMPT = """You are helping a user diagnose a problem with their {device}.

User description: "{description}"
{context_section}
## Task
Generate 3 to 6 follow-up questions that would best separate the remaining possible causes.
Do not repeat anything the user has already told you.

## Response Format (JSON only)
```json
{{
    "questions": [
        {{"id": "q1", "category": "Usage", "question": "Question text?"}}
    ]
}}
```

category must be exactly one of: {categories}

{language_instruction}
"""
