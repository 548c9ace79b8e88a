from __future__ import annotations

from domain.models import Application, Recommendation

SUMMARY_SYSTEM_PROMPT = (
    "You are a helpful assistant that analyzes scholarship applications "
    "and provides concise summaries and highlights."
)

ESSAY_CHAR_BUDGET = 2000
LETTER_CHAR_BUDGET = 1000

RESPONSE_FORMAT = """
---

Please provide your response in this exact format:
SUMMARY: [2-3 sentence summary of the candidate's strengths and fit for the scholarship]
HIGHLIGHTS:
- [Key highlight 1]
- [Key highlight 2]
- [Key highlight 3]
- [Key highlight 4 - optional]
- [Key highlight 5 - optional]
""".strip("\n")


def excerpt(text: str, budget: int) -> str:
    return text[:budget] + ("..." if len(text) > budget else "")


def render_summary_prompt(
    app: Application, recommendations: list[Recommendation], region: str = "MI"
) -> str:
    p, a, e, d = app.personal, app.address, app.education, app.documents
    lines = [
        "Please analyze this scholarship application and provide a brief summary "
        "and 3-5 key highlights.",
        "",
        "## Applicant Information",
        f"Name: {p.first_name if p else ''} {p.last_name if p else ''}".rstrip(),
        f"City: {a.city if a else 'N/A'}, {region}",
        f"High School: {e.high_school_name if e else 'N/A'}",
        f"College: {e.college_name if e else 'N/A'}, "
        f"{e.year_in_college.value if e else 'N/A'}",
        f"Major: {(e.major if e else None) or 'N/A'}",
        f"GPA: {e.gpa if e else 'N/A'}",
    ]
    if e and e.act_score:
        lines.append(f"ACT: {e.act_score}")
    if e and e.sat_score:
        lines.append(f"SAT: {e.sat_score}")

    lines += ["", "## Essay"]
    if d and d.essay_text:
        lines.append(excerpt(d.essay_text, ESSAY_CHAR_BUDGET))
    else:
        lines.append("Essay text not available for AI analysis")

    letters = [r for r in recommendations if r.letter_text]
    if letters:
        lines += ["", "## Recommendations"]
        for i, rec in enumerate(letters, start=1):
            lines.append("")
            lines.append(f"Recommendation {i} from {rec.recommender_name or 'Anonymous'}:")
            lines.append(excerpt(rec.letter_text, LETTER_CHAR_BUDGET))

    lines += ["", RESPONSE_FORMAT]
    return "\n".join(lines)


def build_messages(user_prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]
