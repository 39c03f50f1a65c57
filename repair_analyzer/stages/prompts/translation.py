"""
번역 프롬프트
"""

TRANSLATION_PROMPT = """Translate the following {context_label} from {from_language} to {to_language}.

- Keep product names, model numbers, units and technical terms accurate
- Keep line breaks and numbering
- Return ONLY the translated text, with no quotes or explanations

Text:
{text}
"""

CONTEXT_LABELS = {
    "user_input": "user-written text about a broken device",
    "ai_response": "repair guidance text",
}
