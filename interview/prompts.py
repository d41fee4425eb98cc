from __future__ import annotations  # Prompt templates for question generation, scoring and reporting

from textwrap import dedent
from typing import Any, Dict, Iterable, List

from langchain_core.prompts import ChatPromptTemplate

from llm_gateway import coerce_messages


INTERVIEWER_ROLE = dedent(  # Shared persona for every interviewer prompt
    """
    You are an expert technical interviewer with years of experience in conducting {industry} interviews.
    Focus on real-world problem solving, implementation details and system design.
    Never ask generic questions such as "tell me about yourself" and never ask about soft skills.
    """
).strip()


FIRST_QUESTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", INTERVIEWER_ROLE),
        (
            "human",
            (
                "Resume Context:\n{resume}\n\n"
                "Generate one focused, professional interview question based on the candidate's resume. The question must:\n"
                "1. Reference specific experience, projects or skills from the resume\n"
                "2. Be technical but clear and concise (max 2 sentences, under 150 characters)\n"
                "3. Target senior-level technical depth\n"
                "4. End with a question mark\n\n"
                "Return ONLY the question, nothing else."
            ),
        ),
    ]
)


FIRST_QUESTION_RETRY_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            (
                "Based on this resume:\n{resume}\n\n"
                "Generate ONE specific technical question about their most recent project or technical skill "
                "for a {industry} interview.\n"
                "Must be under 100 characters and end with a question mark.\n"
                "Focus on technical depth, not soft skills. Return ONLY the question."
            ),
        ),
    ]
)


ANALYSIS_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are an expert technical interviewer analyzing a candidate's response."),
        (
            "human",
            (
                "Question Asked: {question}\n\n"
                "Candidate's Answer: {answer}\n\n"
                "Evaluate technical accuracy, problem-solving approach and clarity against senior-level expectations.\n"
                "Reply with a single JSON object and nothing else:\n"
                "{{\n"
                '  "technicalAccuracy": <integer 1-10>,\n'
                '  "problemSolving": <integer 1-10>,\n'
                '  "communicationClarity": <integer 1-10>,\n'
                '  "keyStrength": "<one specific technical strength from the answer>",\n'
                '  "technicalImprovement": "<one specific technical aspect to improve>",\n'
                '  "followUpQuestion": "<a technical follow-up question based on the answer>"\n'
                "}}"
            ),
        ),
    ]
)


NEXT_QUESTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", INTERVIEWER_ROLE),
        (
            "human",
            (
                "Context:\n"
                "- Previous Question: {question}\n"
                "- Candidate's Answer: {answer}\n"
                "- Technical Strengths: {strength}\n"
                "- Areas to Probe: {improvement}\n\n"
                "Questions already asked:\n{asked}\n\n"
                "Generate the next technical interview question that builds on the previous answer, "
                "probes deeper into implementation details or system design and is at most 2 sentences.\n"
                "Do not repeat or rephrase any question already asked.\n"
                "Return ONLY the question, nothing else."
            ),
        ),
    ]
)


NEXT_QUESTION_RETRY_NOTE = (
    "Your previous suggestion overlapped with a question already asked. "
    "Pick a different technical topic from the candidate's answers and return ONLY the new question."
)


REPORT_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are an expert technical interviewer writing a comprehensive technical evaluation."),
        (
            "human",
            (
                "Interview transcript for a {industry} candidate:\n{transcript}\n\n"
                "Write a technical evaluation with:\n"
                "1. Technical proficiency assessment\n"
                "2. System design and architecture strengths\n"
                "3. Technical improvements needed\n"
                "4. Technical learning recommendations\n\n"
                "Reply with a single JSON object and nothing else, using the keys "
                '"technicalAssessment" (string), "architectureStrengths" (list of strings), '
                '"technicalImprovements" (list of strings) and "learningPath" (list of strings). '
                "Focus only on technical aspects and name the technologies the candidate mentioned."
            ),
        ),
    ]
)


RESUME_ANALYSIS_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            (
                "Analyze this resume and summarize, in clearly separated sections: professional title, "
                "technical skills, domain expertise, experience with key achievements, projects with the "
                "technologies used, and education. Write \"Not specified in resume\" for missing sections.\n\n"
                "Resume text:\n{resume}"
            ),
        ),
    ]
)


RESUME_QUESTIONS_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are a senior technical interviewer for the {industry} industry."),
        (
            "human",
            (
                "Based on this resume analysis, generate {count} interview questions that assess the candidate thoroughly:\n"
                "- 3 technical questions specific to their skills and experience\n"
                "- 2 behavioral questions based on their past projects or roles\n"
                "- 1 question about their domain knowledge\n"
                "- 1 question about their problem-solving approach\n\n"
                "Avoid generic questions. Each question should be 1-3 sentences.\n"
                "Reply with a JSON array of strings and nothing else.\n\n"
                "Resume Analysis:\n{analysis}"
            ),
        ),
    ]
)


def render(prompt: ChatPromptTemplate, **values: Any) -> List[Dict[str, str]]:
    """Format ``prompt`` into role/content dicts for a text generator."""

    return coerce_messages(prompt.format_messages(**values))


def numbered(entries: Iterable[str]) -> str:
    lines = [item.strip() for item in entries if item and item.strip()]
    if not lines:
        return "None yet."
    return "\n".join(f"{index}. {line}" for index, line in enumerate(lines, start=1))


def clamp_text(text: str, limit: int = 600) -> str:  # Compact whitespace and clip length
    compact = " ".join(text.split())
    if len(compact) <= limit:
        return compact
    return compact[: limit - 1].rstrip() + "…"


__all__ = [
    "ANALYSIS_PROMPT",
    "FIRST_QUESTION_PROMPT",
    "FIRST_QUESTION_RETRY_PROMPT",
    "NEXT_QUESTION_PROMPT",
    "NEXT_QUESTION_RETRY_NOTE",
    "REPORT_PROMPT",
    "RESUME_ANALYSIS_PROMPT",
    "RESUME_QUESTIONS_PROMPT",
    "clamp_text",
    "numbered",
    "render",
]
