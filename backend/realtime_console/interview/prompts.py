from realtime_console.interview.models import ResponseContext


STYLE_DIRECTIVES = {
    "experience_focused": "Please provide a professional response highlighting relevant experience and skills. ",
    "technical_explanation": "Please provide a clear technical explanation with examples if appropriate. ",
    "example_based": "Please provide a specific example or case study to illustrate the point. ",
    "motivation_focused": "Please provide a thoughtful response about motivations and goals. ",
}
DEFAULT_STYLE_DIRECTIVE = "Please provide a professional and appropriate response. "

INTERVIEW_TYPE_DIRECTIVES = {
    "technical": "This is a technical interview, so focus on technical aspects and problem-solving. ",
    "behavioral": "This is a behavioral interview, so use the STAR method (Situation, Task, Action, Result) if applicable. ",
    "panel": "This is a panel interview with multiple interviewers. ",
}

CLOSING_DIRECTIVE = "Keep the response concise, professional, and directly address the question asked."


def build_interview_prompt(context: ResponseContext, interview_type: str = "general") -> str:
    prompt = f'I\'m in an interview setting. The interviewer just asked: "{context.question}". '

    recent = str(context.context or "").strip()
    if recent and recent != context.question:
        prompt += f'Recent conversation context: "{recent}". '

    prompt += STYLE_DIRECTIVES.get(context.response_style, DEFAULT_STYLE_DIRECTIVE)
    prompt += INTERVIEW_TYPE_DIRECTIVES.get(str(interview_type or "").lower(), "")
    prompt += CLOSING_DIRECTIVE
    return prompt
