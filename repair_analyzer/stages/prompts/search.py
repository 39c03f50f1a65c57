"""
검색 기반 진단 프롬프트
"""

SEARCH_SOLUTION_PROMPT = """You are a repair expert. Using the search results below, write a concise step-by-step repair solution.

Device: {device}
Diagnosis so far: {analysis}

Search results:
{search_content}

Keep it practical: numbered steps, tools needed, and when to get professional help.
Plain text only.

{language_instruction}
"""

SEARCH_DIAGNOSIS_PROMPT = """Based on these search results about {device_category} repair issues:
{search_content}

User symptoms: {symptoms}

## Response Format (JSON only)
```json
{{
    "visualAnalysis": "Brief description",
    "likelyProblems": ["1-3 specific issues"],
    "confidence": "high|medium|low",
    "confirmationQuestions": ["5 diagnostic questions"]
}}
```

{language_instruction}
"""

VISION_DIAGNOSIS_PROMPT = """Analyze this {device_category} with symptoms: {symptoms}

## Response Format (JSON only)
```json
{{
    "visualAnalysis": "What the images show",
    "likelyProblems": ["1-3 likely issues, most likely first"],
    "confidence": "high|medium|low",
    "confirmationQuestions": ["5 questions to confirm the problem"]
}}
```

Always provide at least one likely problem.

{language_instruction}
"""
