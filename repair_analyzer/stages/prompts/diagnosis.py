"""
최종 진단 / 수리 리포트 프롬프트
"""

FINAL_DIAGNOSIS_PROMPT = """Based on the comprehensive analysis and user answers, provide a final diagnosis and repair guide.

{context}

User Answers to Questions:
{answers}

## Response Format (JSON only)
```json
{{
    "problem": "Clear identification of the specific problem based on all available information",
    "detailedRepairSteps": [
        "Step 1: Detailed repair instruction that is easy to understand",
        "Step 2: Next specific repair step",
        "Step 3: Continue with clear, actionable instructions"
    ],
    "safetyTips": [
        "Safety tip 1",
        "Safety tip 2",
        "Safety tip 3"
    ]
}}
```

## Requirements
- Problem must be specific and based on all analysis data and answers
- Include 3-7 repair steps, each clear and actionable
- Include at least 3 safety tips
- Make instructions suitable for {device_name}

{language_instruction}
"""

REPAIR_REPORT_PROMPT = """Create a repair report for a {device_name} from the diagnosis data below.

{context}

User Answers to Questions:
{answers}

## Response Format (JSON only)
```json
{{
    "problemWithReason": {{
        "problem": "The identified problem",
        "reason": "Why it happened"
    }},
    "repairStepsWithSafety": [
        "Step with its safety note"
    ],
    "toolsNeeded": ["Tool 1", "Tool 2"]
}}
```

## Requirements
- Every repair step carries its own safety warning where relevant
- If the repair is not safe for a non-professional, say so in the first step

{language_instruction}
"""
