"""
Repair Client Example - Staged diagnosis walkthrough

Usage:
    python examples/repair_client_example.py <access_token> [device_name] [description]
"""
import asyncio
import sys

from repair_analyzer.api import RepairApiClient
from repair_analyzer.errors import RepairAssistantError


BASE_URL = "http://localhost:7000"


def print_list(title: str, items):
    print(f"\n{title}")
    print("-" * 60)
    for i, item in enumerate(items, 1):
        print(f"  {i}. {item}")


async def run_walkthrough(token: str, device_name: str, description: str):
    async with RepairApiClient(BASE_URL, token=token) as client:
        # 1. 기기 기반 질문
        questions = await client.generate_device_questions(device_name, description)
        print_list(
            "❓ Questions" + (" (fallback)" if questions["usedFallback"] else ""),
            [f"[{q['category']}] {q['question']}" for q in questions["questions"]],
        )

        # 예시에서는 모든 질문에 같은 답변
        answers = {q["id"]: "Yes, since last week" for q in questions["questions"]}

        # 2. 최종 진단
        diagnosis = await client.final_diagnosis(
            device_name,
            description=description,
            questions=questions["questions"],
            answers=answers,
        )
        print(f"\n🔧 Diagnosis: {diagnosis['problem']}")
        print_list("Repair steps", diagnosis["detailedRepairSteps"])
        print_list("Safety tips", diagnosis["safetyTips"])

        # 3. 해결되지 않았을 때 대안
        alternatives = await client.generate_alternatives(
            device_name,
            problem=diagnosis["problem"],
            steps=diagnosis["detailedRepairSteps"],
            feedback="The problem is still there after following the steps",
            description=description,
        )
        for alt in alternatives["alternatives"]:
            print_list(f"🔁 #{alt['rank']} {alt['cause']}", alt["steps"])
        print(f"\n👷 {alternatives['whenToSeekProfessional']}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python examples/repair_client_example.py <access_token> [device_name] [description]")
        sys.exit(1)

    token = sys.argv[1]
    device_name = sys.argv[2] if len(sys.argv) > 2 else "Laptop"
    description = sys.argv[3] if len(sys.argv) > 3 else "The fan makes a loud grinding noise"

    print("=" * 60)
    print(f"Repair walkthrough: {device_name}")
    print("=" * 60)

    try:
        asyncio.run(run_walkthrough(token, device_name, description))
    except RepairAssistantError as e:
        print(f"\n❌ {type(e).__name__}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
