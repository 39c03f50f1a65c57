"""
응답 정규화 테스트 (JSON 추출 + 스테이지별 필드 복구)
"""
import json

import pytest

from repair_analyzer.stages.defaults import (
    ALTERNATIVE_STEP_PLACEHOLDER,
    ASSESSMENT_PENDING,
    DEFAULT_ALTERNATIVES,
    DEFAULT_DEVICE_QUESTIONS,
    DEFAULT_IMAGE_PROBLEM,
    DEFAULT_IMAGE_QUESTIONS,
    DEFAULT_LIKELY_PROBLEMS,
    DEFAULT_PROBLEM,
    DEFAULT_REPAIR_STEPS,
    DEFAULT_REPORT_STEPS,
    DEFAULT_REPORT_TOOLS,
    DEFAULT_COMPONENT_SUGGESTION,
    DEFAULT_SAFETY_TIPS,
    FALLBACK_GUIDANCE,
    SEARCH_GUIDANCE,
)
from repair_analyzer.stages.models import QuestionCategory
from repair_analyzer.stages.normalizer import (
    coerce_category,
    extract_json_array,
    extract_json_object,
    infer_category,
    repair_alternatives,
    repair_code_questions,
    repair_component_identification,
    repair_description_analysis,
    repair_diagnosis_analysis,
    repair_final_diagnosis,
    repair_image_analysis,
    repair_questions,
    repair_repair_guidance,
    repair_repair_report,
)

CATEGORY_VALUES = {c.value for c in QuestionCategory}


class TestExtractJson:
    """JSON 추출 테스트"""

    @pytest.mark.parametrize("document", [
        {"problem": "Fan failure"},
        {"questions": [{"id": "q1", "category": "Power", "question": "Does it turn on?"}]},
        {"nested": {"list": [1, 2, 3], "flag": True}, "text": "quotes \" and unicode 한국어"},
    ])
    @pytest.mark.parametrize("prefix,suffix", [
        ("", ""),
        ("Here is the analysis:\n", "\nLet me know if you need more."),
        ("```json\n", "\n```"),
        ("Sure! ```JSON\n", "\n``` Hope this helps"),
    ])
    def test_wrapped_document_is_recovered(self, document, prefix, suffix):
        """설명문 / 코드 펜스로 감싼 객체도 그대로 복원"""
        text = prefix + json.dumps(document, ensure_ascii=False) + suffix
        assert extract_json_object(text) == document

    @pytest.mark.parametrize("text", [
        None,
        "",
        "no json here",
        "[1, 2, 3]",
        "{not valid json}",
        "} backwards {",
    ])
    def test_unparseable_returns_none(self, text):
        assert extract_json_object(text) is None

    def test_extract_array(self):
        assert extract_json_array('Questions:\n```json\n["a?", "b?"]\n```') == ["a?", "b?"]
        assert extract_json_array('{"questions": 1}') is None


class TestImageAnalysisRepair:
    """이미지 분석 복구"""

    def test_valid_document_is_untouched(self):
        raw = {
            "problems": [{"label": "Cracked screen", "reasoning": "Visible crack", "confidence": "high"}],
            "visualObservations": "The display has a diagonal crack",
            "clarifyingQuestions": [f"Question {i}?" for i in range(5)],
        }
        document, repaired = repair_image_analysis(raw, "phone")

        assert repaired == []
        assert document.to_response() == raw

    def test_missing_response_uses_defaults(self):
        document, repaired = repair_image_analysis(None, "laptop")

        assert set(repaired) == {"problems", "visualObservations", "clarifyingQuestions"}
        assert document.problems[0].label == DEFAULT_IMAGE_PROBLEM["label"]
        assert document.visual_observations == "I can see your laptop in the provided images."
        assert document.clarifying_questions == DEFAULT_IMAGE_QUESTIONS

    def test_string_problems_and_bad_confidence_are_coerced(self):
        raw = {
            "problems": ["Swollen battery", {"label": "Loose hinge", "confidence": "VERY HIGH"}, {"reasoning": "no label"}],
            "visualObservations": "Back panel is bulging",
            "clarifyingQuestions": ["Is it hot?"],
        }
        document, repaired = repair_image_analysis(raw)

        assert [p.label for p in document.problems] == ["Swollen battery", "Loose hinge"]
        assert document.problems[0].reasoning == ASSESSMENT_PENDING
        assert document.problems[1].confidence.value == "medium"
        assert "problems" in repaired

    def test_questions_are_exactly_five(self):
        too_few, _ = repair_image_analysis({"clarifyingQuestions": ["Is it hot?", "Does it beep?"]})
        too_many, _ = repair_image_analysis({"clarifyingQuestions": [f"Q{i}?" for i in range(8)]})

        assert len(too_few.clarifying_questions) == 5
        assert too_few.clarifying_questions[:2] == ["Is it hot?", "Does it beep?"]
        assert too_many.clarifying_questions == [f"Q{i}?" for i in range(5)]


class TestDescriptionAnalysisRepair:
    """설명 분석 복구"""

    def test_empty_lists_replaced(self):
        document, repaired = repair_description_analysis({
            "prioritizedProblems": [],
            "matchedKeywords": ["fan", "noise"],
            "analysisNotes": "Grinding sound suggests bearing wear",
        })

        assert len(document.prioritized_problems) == 3
        assert document.matched_keywords == ["fan", "noise"]
        assert repaired == ["prioritizedProblems"]


class TestQuestionRepair:
    """질문 복구"""

    def repair(self, raw):
        return repair_questions(raw, defaults=DEFAULT_DEVICE_QUESTIONS, min_items=5, max_items=5)

    def test_missing_questions_use_defaults(self):
        document, repaired = self.repair(None)

        assert repaired == ["questions"]
        assert [q.question for q in document.questions] == [q["question"] for q in DEFAULT_DEVICE_QUESTIONS]

    def test_string_items_get_ids_and_categories(self):
        document, _ = self.repair(["Does the battery charge?", "Is the screen flickering?"])

        assert document.questions[0].id == "q1"
        assert document.questions[0].category == QuestionCategory.POWER
        assert document.questions[1].category == QuestionCategory.DISPLAY
        assert len(document.questions) == 5

    def test_unknown_categories_are_coerced_to_enum(self):
        raw = {"questions": [
            {"id": "a", "category": "display", "question": "Any dead pixels?"},
            {"id": "b", "category": "Software", "question": "Is the screen flickering?"},
            {"id": "c", "category": "General", "question": "How old is it?"},
            {"id": "d", "category": None, "question": "Does the speaker crackle?"},
            {"id": "e", "category": "Usage", "question": "How often do you use it?"},
        ]}
        document, repaired = self.repair(raw)

        categories = [q.category.value for q in document.questions]
        assert categories == ["Display", "Display", "Usage", "Audio", "Usage"]
        assert set(categories) <= CATEGORY_VALUES
        assert repaired == ["questions"]

    def test_duplicate_ids_are_renumbered(self):
        raw = [{"id": "q1", "category": "Power", "question": f"Question {i}?"} for i in range(5)]
        document, _ = self.repair(raw)

        ids = [q.id for q in document.questions]
        assert len(set(ids)) == 5

    def test_canned_sets_use_enum_categories_only(self):
        assert {q["category"] for q in DEFAULT_DEVICE_QUESTIONS} <= CATEGORY_VALUES

    def test_category_helpers(self):
        assert coerce_category("POWER", "anything") == "Power"
        assert infer_category("Where do you keep it?") == "Environment"
        assert infer_category("What colour is it?") == "Usage"


class TestFinalDiagnosisRepair:
    """최종 진단 복구"""

    def test_too_few_steps_replaced_with_canned_five(self):
        document, repaired = repair_final_diagnosis({
            "problem": "Worn fan bearing",
            "detailedRepairSteps": ["Open the case", "Replace the fan"],
            "safetyTips": ["Unplug first"],
        })

        assert document.problem == "Worn fan bearing"
        assert document.detailed_repair_steps == DEFAULT_REPAIR_STEPS
        assert document.safety_tips[0] == "Unplug first"
        assert len(document.safety_tips) == 3
        assert set(repaired) == {"detailedRepairSteps", "safetyTips"}

    def test_missing_everything(self):
        document, _ = repair_final_diagnosis("not even a dict")

        assert document.problem == DEFAULT_PROBLEM
        assert document.detailed_repair_steps == DEFAULT_REPAIR_STEPS
        assert document.safety_tips == DEFAULT_SAFETY_TIPS

    def test_extra_fields_are_preserved(self):
        raw = {
            "problem": "Dust build-up",
            "detailedRepairSteps": ["a", "b", "c"],
            "safetyTips": ["x", "y", "z"],
            "estimatedTime": "30 minutes",
        }
        document, repaired = repair_final_diagnosis(raw)

        assert repaired == []
        assert document.to_response() == raw


class TestRepairReportRepair:
    """수리 리포트 복구"""

    def test_missing_sections(self):
        document, repaired = repair_repair_report({"problemWithReason": {"problem": "Dead battery"}})

        assert document.problem_with_reason.problem == "Dead battery"
        assert document.problem_with_reason.reason
        assert document.repair_steps_with_safety == DEFAULT_REPORT_STEPS
        assert document.tools_needed == DEFAULT_REPORT_TOOLS
        assert "problemWithReason.reason" in repaired


class TestAlternativesRepair:
    """대안 해결책 복구"""

    def test_sorted_and_reranked(self):
        document, _ = repair_alternatives({
            "alternatives": [
                {"rank": 3, "cause": "Bad capacitor", "reasoning": "r", "steps": ["s"], "toolsNeeded": []},
                {"rank": 1, "cause": "Loose cable", "reasoning": "r", "steps": ["s"], "toolsNeeded": ["Screwdriver"]},
            ],
            "whenToSeekProfessional": "If you smell burning",
        })

        assert [a.cause for a in document.alternatives] == ["Loose cable", "Bad capacitor"]
        assert [a.rank for a in document.alternatives] == [1, 2]

    def test_missing_steps_get_placeholder(self):
        document, repaired = repair_alternatives({"alternatives": [{"cause": "Firmware bug"}]})

        assert document.alternatives[0].steps == [ALTERNATIVE_STEP_PLACEHOLDER]
        assert document.alternatives[0].tools_needed == []
        assert "alternatives" in repaired
        assert "whenToSeekProfessional" in repaired

    def test_empty_uses_defaults(self):
        document, _ = repair_alternatives({"alternatives": []})

        assert len(document.alternatives) == len(DEFAULT_ALTERNATIVES)
        assert document.alternatives[0].rank == 1


class TestCodeQuestionRepair:
    def test_array_response_is_bounded(self):
        few, _ = repair_code_questions(["Which board?"])
        many, _ = repair_code_questions([f"Q{i}?" for i in range(7)])

        assert len(few.questions) == 3
        assert few.questions[0] == "Which board?"
        assert len(many.questions) == 5


class TestDiagnosisAnalysisRepair:
    def test_bounds_and_confidence(self):
        document, repaired = repair_diagnosis_analysis({
            "visualAnalysis": "Burn mark near the port",
            "likelyProblems": ["a", "b", "c", "d"],
            "confidence": "certain",
            "confirmationQuestions": ["x?", "y?", "z?"],
        })

        assert document.likely_problems == ["a", "b", "c"]
        assert document.confidence.value == "medium"
        assert set(repaired) == {"likelyProblems", "confidence"}

    def test_empty_problems_use_defaults(self):
        document, _ = repair_diagnosis_analysis({"likelyProblems": []}, "pcb")

        assert document.likely_problems == DEFAULT_LIKELY_PROBLEMS
        assert "pcb" in document.visual_analysis


class TestRepairGuidanceRepair:
    def test_valid_document_unchanged(self):
        raw = {
            "steps": "1. Open the case\n2. Replace the fuse",
            "tools": "Screwdriver, Multimeter",
            "estimatedCost": "$5",
            "difficulty": "Easy",
            "safetyWarnings": ["Unplug first"],
        }
        document, repaired = repair_repair_guidance(raw)

        assert repaired == []
        assert document.to_response() == raw

    def test_list_steps_and_tools_are_joined(self):
        document, repaired = repair_repair_guidance({
            "steps": [{"step": 1, "description": "Open the case"}, "Replace the fuse", {"step": 3}],
            "tools": ["Screwdriver", 7, "Multimeter"],
            "estimatedCost": "$5",
            "difficulty": "Easy",
        })

        assert document.steps == "1. Open the case\n2. Replace the fuse"
        assert document.tools == "Screwdriver, Multimeter"
        assert repaired == ["steps", "tools"]

    def test_missing_fields_use_given_defaults(self):
        document, repaired = repair_repair_guidance({"steps": "Reflow the joint", "difficulty": 3}, SEARCH_GUIDANCE)

        assert document.steps == "Reflow the joint"
        assert document.estimated_cost == SEARCH_GUIDANCE["estimatedCost"]
        assert document.difficulty == SEARCH_GUIDANCE["difficulty"]
        assert set(repaired) == {"tools", "estimatedCost", "difficulty"}

    def test_non_object_uses_fallback_guidance(self):
        document, repaired = repair_repair_guidance(["not", "an", "object"])

        assert document.to_response() == FALLBACK_GUIDANCE
        assert len(repaired) == 4


class TestComponentIdentificationRepair:
    def test_components_keep_named_items(self):
        document, repaired = repair_component_identification({
            "overallSuggestion": "This is an ATmega328P microcontroller.",
            "components": [
                {"name": "ATmega328P", "description": "8-bit MCU", "confidence": "high"},
                "16 MHz crystal",
                {"description": "unnamed"},
            ],
        })

        response = document.to_response()
        assert [c["name"] for c in response["components"]] == ["ATmega328P", "16 MHz crystal"]
        assert response["components"][0]["description"] == "8-bit MCU"
        assert repaired == ["components"]

    def test_empty_response(self):
        document, repaired = repair_component_identification(None)

        assert document.overall_suggestion == DEFAULT_COMPONENT_SUGGESTION
        assert document.components == []
        assert repaired == ["overallSuggestion", "components"]

    def test_valid_document_unchanged(self):
        raw = {"overallSuggestion": "A 10k resistor.", "components": [{"name": "Resistor", "value": "10k"}]}
        _, repaired = repair_component_identification(raw)
        assert repaired == []
