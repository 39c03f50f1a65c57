"""
대안 해결책 프롬프트
"""

ALTERNATIVES_PROMPT = """A user followed a repair guide for their {device_name}, but it did not fix the problem.

{context}

## Solution that did NOT work
Problem identified: {rejected_problem}
Steps tried:
{rejected_steps}
{feedback_section}
## Task
Propose alternative causes the first diagnosis may have missed, ranked from most to least likely,
each with its own repair steps. Do not repeat the rejected solution.

## Response Format (JSON only)
```json
{{
    "alternatives": [
        {{
            "rank": 1,
            "cause": "Alternative cause",
            "reasoning": "Why this fits the symptoms and the failed fix",
            "steps": ["Step 1", "Step 2"],
            "toolsNeeded": ["Tool"]
        }}
    ],
    "whenToSeekProfessional": "When the user should stop and get professional help"
}}
```

- 2-4 alternatives

{language_instruction}
"""
