from typing import Dict, List, Optional, Sequence

READY_SENTINEL = "READY_TO_GENERATE"

# Ranking labels are assigned in this provider order
CANDIDATE_LABELS = ("A", "B", "C")

PROVIDER_DISPLAY_NAMES = {
    "gemini": "Gemini",
    "claude": "Claude",
    "deepseek": "DeepSeek",
}

FRAMEWORKS: List[Dict] = [
    {
        "id": "rtf",
        "name": "RTF",
        "description": "Role, Task, Format",
        "use_cases": ["Quick tasks", "Emails", "Summaries"],
    },
    {
        "id": "costar",
        "name": "COSTAR",
        "description": "Context, Objective, Style, Tone, Audience, Response",
        "use_cases": ["Communications", "Marketing"],
    },
    {
        "id": "risen",
        "name": "RISEN",
        "description": "Role, Instructions, Steps, End Goal, Narrowing",
        "use_cases": ["SOPs", "Research", "Documentation"],
    },
    {
        "id": "crispe",
        "name": "CRISPE",
        "description": "Capacity, Request, Insight, Statement, Personality, Experiment",
        "use_cases": ["Strategic content", "Complex requests"],
    },
    {
        "id": "cot",
        "name": "Chain of Thought",
        "description": "Step-by-step reasoning",
        "use_cases": ["Analysis", "Reasoning", "Complex decisions"],
    },
    {
        "id": "fewshot",
        "name": "Few-Shot",
        "description": "Providing examples to guide output",
        "use_cases": ["Standardizing outputs", "Data classification"],
    },
]


# 🧭 Clarifying loop: one question per turn until the model has enough context
def build_clarify_system_prompt(framework: str) -> str:
    return f"""You are a prompt engineering expert helping a corporate user craft a high-quality AI prompt.
The user has selected the {framework} framework and described their goal.
Your job is to ask ONE clarifying question at a time to gather the information needed
to build an excellent {framework}-structured prompt.

Ask questions that uncover:
- Audience (who will read the output)
- Tone (formal, empathetic, direct)
- Constraints (length, format, things to avoid)
- Specific context details relevant to {framework}

When you have enough information (after 2-4 questions), respond ONLY with the exact text:
{READY_SENTINEL}

Otherwise, respond with exactly ONE question. No preamble, no numbering."""


def build_clarify_messages(user_question: str, previous_qa: Sequence[dict]) -> List[dict]:
    messages = [{"role": "user", "content": user_question}]
    for qa in previous_qa:
        messages.append({"role": "assistant", "content": qa["question"]})
        messages.append({"role": "user", "content": qa["answer"]})
    return messages


# 🧠 Master context shared by all three generators
def build_master_context(framework: str, user_question: str, qa_history: Sequence[dict]) -> str:
    lines = [
        f"Framework: {framework}",
        f"Original Task: {user_question}",
        "",
        "Clarifying Q&A History:",
    ]
    for i, qa in enumerate(qa_history, start=1):
        lines.append(f"Q{i}: {qa['question']}")
        lines.append(f"A{i}: {qa['answer']}")
    return "\n".join(lines) + "\n"


def build_generation_system_prompt(framework: str) -> str:
    return f"""You are an expert prompt engineer. Using the {framework} framework,
craft a single, complete, production-ready AI prompt based on the user's
context below. Output ONLY the prompt itself: no explanation, no preamble,
no markdown headers. The prompt should be ready to paste directly into an AI tool."""


# ⚖️ Judge prompt
RANKING_SYSTEM_PROMPT = """You are an expert prompt engineer and judge. Evaluate the AI prompts generated
for the same task and rank them from best to worst."""


def assign_labels(prompts: Dict[str, Optional[str]]) -> Dict[str, str]:
    """Map label -> provider for the non-empty prompts, in provider order."""
    providers = [p for p in PROVIDER_DISPLAY_NAMES if prompts.get(p)]
    return dict(zip(CANDIDATE_LABELS, providers))


def build_ranking_message(
    framework: str,
    user_question: str,
    prompts: Dict[str, Optional[str]],
    labels: Dict[str, str],
) -> str:
    sections = []
    for label, provider in labels.items():
        sections.append(f"PROMPT {label} ({PROVIDER_DISPLAY_NAMES[provider]}):\n{prompts[provider]}")

    label_list = ", ".join(f'"{label}"' for label in labels)
    score_lines = ",\n".join(
        f'     "{label}": {{"clarity":0, "completeness":0, "adherence":0, "usability":0}}'
        for label in labels
    )
    first = next(iter(labels))

    return f"""Framework used: {framework}
Original task: {user_question}

{chr(10).join(sections)}

Evaluate each prompt on: Clarity, Completeness, Framework Adherence, Usability (0-10 each).

Respond in this exact JSON format:
{{
  "ranking": [{label_list}],
  "scores": {{
{score_lines}
  }},
  "explanation": "string explaining the ranking in 2-3 sentences",
  "winner": "{first}"
}}"""
