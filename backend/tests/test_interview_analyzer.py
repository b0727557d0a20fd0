from realtime_console.interview.analyzer import (
    ConversationAnalyzer,
    detect_interviewer,
    detect_question,
    determine_response_style,
)
from realtime_console.interview.models import InterviewSettings, ResponseContext
from realtime_console.interview.prompts import build_interview_prompt


def test_detect_question_tiers():
    punctuation = detect_question("What did you build last year?")
    assert (punctuation.detected, punctuation.confidence, punctuation.kind) == (True, 0.9, "punctuation")

    pattern = detect_question("Tell me about your last project")
    assert (pattern.detected, pattern.confidence, pattern.kind) == (True, 0.8, "pattern")

    rising = detect_question("So that is correct")
    assert (rising.detected, rising.confidence) == (True, 0.6)

    assert detect_question("I worked at a bank for five years").detected is False


def test_detect_interviewer_tiers():
    assert detect_interviewer("Great, next question for you").confidence == 0.9
    assert detect_interviewer("This position needs strong Python").confidence == 0.7

    none = detect_interviewer("I like dogs")
    assert none.detected is False
    assert none.confidence == 0.3


def test_response_style_first_match_wins():
    assert determine_response_style("Tell me about your experience") == "experience_focused"
    assert determine_response_style("How do you scale a cache?") == "technical_explanation"
    assert determine_response_style("Give me an example") == "example_based"
    assert determine_response_style("Why this company?") == "motivation_focused"
    assert determine_response_style("Hello there") == "general_professional"


def test_clear_interviewer_question_responds_with_high_confidence():
    analyzer = ConversationAnalyzer()
    analysis = analyzer.analyze("What projects have you led in this role?", timestamp=100.0)

    assert analysis.should_respond is True
    assert analysis.confidence == 0.9
    assert analysis.reason == "clear_interviewer_question"
    assert analysis.response_context.question == "What projects have you led in this role?"
    assert analysis.response_context.interviewer_confidence == 0.7


def test_follow_up_question_uses_recent_questions():
    analyzer = ConversationAnalyzer()
    first = analyzer.analyze("How do you handle conflict?", timestamp=100.0)
    # current entry counts as recent activity
    assert first.confidence == 0.5
    assert first.reason == "possible_question_in_interview"

    second = analyzer.analyze("Why did you pick that approach?", timestamp=110.0)
    assert second.flow.recent_questions == 1
    assert second.confidence == 0.7
    assert second.reason == "likely_question_in_interview_context"
    assert "How do you handle conflict?" in second.response_context.context


def test_statement_and_empty_transcripts():
    analyzer = ConversationAnalyzer()
    statement = analyzer.analyze("I moved teams in March", timestamp=1.0)
    assert statement.should_respond is False
    assert statement.reason == "no_question_detected"

    empty = analyzer.analyze("   ", timestamp=2.0)
    assert empty.reason == "empty_transcript"
    assert len(analyzer.history) == 1


def test_history_is_bounded_and_flow_pace():
    analyzer = ConversationAnalyzer(history_limit=3)
    for index in range(5):
        analyzer.analyze(f"statement number {index}", timestamp=float(index))
    assert len(analyzer.history) == 3
    assert analyzer.history[0].transcript == "statement number 2"

    same_instant = ConversationAnalyzer()
    same_instant.analyze("one", timestamp=5.0)
    same_instant.analyze("two", timestamp=5.0)
    assert same_instant.analyze("three", timestamp=5.0).flow.pace == "fast"


def test_summary_and_reset():
    analyzer = ConversationAnalyzer()
    analyzer.analyze("What is your background?", timestamp=10.0)
    analyzer.analyze("I studied physics", timestamp=40.0)

    summary = analyzer.summary()
    assert summary["total_entries"] == 2
    assert summary["total_questions"] == 1
    assert summary["conversation_duration"] == 30.0

    analyzer.reset()
    assert analyzer.summary()["total_entries"] == 0


def test_interview_prompt_includes_style_and_type():
    context = ResponseContext(
        question="How do you design a rate limiter?",
        context="We talked about caching. How do you design a rate limiter?",
        question_type="punctuation",
        response_style="technical_explanation",
        interviewer_confidence=0.7,
    )
    prompt = build_interview_prompt(context, "technical")

    assert prompt.startswith('I\'m in an interview setting. The interviewer just asked: "How do you design a rate limiter?"')
    assert "Recent conversation context" in prompt
    assert "clear technical explanation" in prompt
    assert "This is a technical interview" in prompt
    assert prompt.endswith("directly address the question asked.")


def test_interview_settings_normalize():
    settings = InterviewSettings(response_threshold=3, interview_type="Unknown")
    assert settings.response_threshold == 1.0
    assert settings.interview_type == "general"
