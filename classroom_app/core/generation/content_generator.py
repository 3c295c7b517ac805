"""AI generation of classroom material on top of a ``TextGenerator``.

Every public function raises ``GenerationError`` with a message meant for the
person who triggered it; the underlying cause is logged and chained.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from classroom_app.constants.ai_constants import (
    CASE_STUDY_PROMPT,
    EXPLANATION_PROMPT,
    GENERATED_CONTENT_TOPIC,
    IMAGE_PROMPT,
    LECTURE_PROMPT,
    QUIZ_CONTENT_PROMPT,
    QUIZ_TOPIC_PROMPT,
    SUMMARY_PROMPT,
    TRANSLATION_PROMPT,
)
from classroom_app.constants.classroom_constants import DEFAULT_OPTION_LABELS, OPTIONS_PER_QUESTION
from classroom_app.core.errors import GenerationError
from classroom_app.core.generation.text_generator import ImagePart, TextGenerator
from classroom_app.core.models import GeneratedLecture, LectureSlide, Question, QuizDraft

logger = logging.getLogger(__name__)

QUIZ_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "topic": {"type": "STRING", "description": "The main topic of the quiz."},
        "questions": {
            "type": "ARRAY",
            "description": "A list of questions for the quiz.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "questionText": {"type": "STRING", "description": "The text of the multiple-choice question."},
                    "options": {
                        "type": "ARRAY",
                        "description": "An array of 4 possible answers.",
                        "items": {"type": "STRING"},
                    },
                    "correctAnswerIndex": {
                        "type": "INTEGER",
                        "description": "The 0-based index of the correct answer in the options array.",
                    },
                },
                "required": ["questionText", "options", "correctAnswerIndex"],
            },
        },
    },
    "required": ["topic", "questions"],
}

LECTURE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "slides": {
            "type": "ARRAY",
            "description": "An array of lecture slides.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING", "description": "The title of the slide."},
                    "points": {
                        "type": "ARRAY",
                        "description": "An array of bullet points for the slide content.",
                        "items": {"type": "STRING"},
                    },
                },
                "required": ["title", "points"],
            },
        }
    },
    "required": ["slides"],
}

CASE_STUDY_FIELDS: tuple[str, ...] = ("title", "introduction", "problem", "solution", "conclusion")

CASE_STUDY_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "The title of the case study."},
        "introduction": {"type": "STRING", "description": "An introduction or background for the case study."},
        "problem": {"type": "STRING", "description": "The core problem or challenge presented in the case study."},
        "solution": {"type": "STRING", "description": "The solution, actions taken, or process implemented."},
        "conclusion": {"type": "STRING", "description": "The results, outcome, and key takeaways of the case study."},
    },
    "required": list(CASE_STUDY_FIELDS),
}


def generate_quiz(generator: TextGenerator, topic: str, num_questions: int, difficulty: str) -> QuizDraft:
    prompt = QUIZ_TOPIC_PROMPT.format(topic=topic, num_questions=num_questions, difficulty=difficulty)
    message = "Failed to generate quiz. The AI model might be busy or there was an issue with the request."
    data = _generate_json(generator, prompt, QUIZ_SCHEMA, message)
    return _normalize_quiz(data, fallback_topic=topic, num_questions=num_questions)


def generate_quiz_from_content(
    generator: TextGenerator, content: str, num_questions: int, difficulty: str
) -> QuizDraft:
    prompt = QUIZ_CONTENT_PROMPT.format(content=content, num_questions=num_questions, difficulty=difficulty)
    data = _generate_json(generator, prompt, QUIZ_SCHEMA, "Failed to generate quiz from content.")
    return _normalize_quiz(data, fallback_topic=GENERATED_CONTENT_TOPIC, num_questions=num_questions)


def lecture_as_text(lecture: GeneratedLecture) -> str:
    """Plain-text rendering of a lecture used as quiz source material."""
    blocks = []
    for slide in lecture.slides:
        bullet_lines = "\n".join(f"- {point}" for point in slide.points)
        blocks.append(f"Slide: {slide.title}\n{bullet_lines}")
    return "\n\n".join(blocks)


def generate_lecture_slides(generator: TextGenerator, outline: str) -> tuple[LectureSlide, ...]:
    message = "Failed to generate lecture slides from the outline."
    data = _generate_json(generator, LECTURE_PROMPT.format(outline=outline), LECTURE_SCHEMA, message)
    raw_slides = data.get("slides")
    if not isinstance(raw_slides, list):
        logger.error("Invalid format received from AI for slides: %r", data)
        raise GenerationError(message)
    slides = []
    for raw in raw_slides:
        if not isinstance(raw, dict):
            continue
        points = raw.get("points") if isinstance(raw.get("points"), list) else []
        slides.append(LectureSlide(title=str(raw.get("title", "")), points=tuple(str(p) for p in points)))
    return tuple(slides)


def generate_case_study(generator: TextGenerator, outline: str) -> dict[str, str]:
    """Return the five narrative fields of a case study keyed by name."""
    message = "Failed to generate case study from the outline."
    data = _generate_json(generator, CASE_STUDY_PROMPT.format(outline=outline), CASE_STUDY_SCHEMA, message)
    if not all(isinstance(data.get(name), str) and data.get(name) for name in CASE_STUDY_FIELDS):
        logger.error("Invalid format received from AI for case study: %r", data)
        raise GenerationError(message)
    return {name: data[name] for name in CASE_STUDY_FIELDS}


def summarize_text(generator: TextGenerator, text: str) -> str:
    return _generate_text(generator, SUMMARY_PROMPT.format(text=text), "Failed to summarize content.")


def translate_text(generator: TextGenerator, text: str, language: str) -> str:
    return _generate_text(
        generator,
        TRANSLATION_PROMPT.format(text=text, language=language),
        f"Failed to translate content to {language}.",
    )


def describe_image(generator: TextGenerator, data: bytes, mime_type: str) -> str:
    return _generate_text(
        generator,
        IMAGE_PROMPT,
        "Failed to analyze image content.",
        image=ImagePart(data=data, mime_type=mime_type),
    )


def explain(generator: TextGenerator, question: str) -> str:
    return _generate_text(
        generator,
        EXPLANATION_PROMPT.format(question=question),
        "Failed to get an explanation from the AI assistant.",
    )


def _generate_text(generator: TextGenerator, prompt: str, failure_message: str, image: ImagePart | None = None) -> str:
    try:
        return generator.generate(prompt, image=image)
    except Exception as exc:
        logger.error("%s Cause: %s", failure_message, exc)
        raise GenerationError(failure_message) from exc


def _generate_json(
    generator: TextGenerator, prompt: str, schema: dict[str, Any], failure_message: str
) -> dict[str, Any]:
    try:
        raw = generator.generate(prompt, response_schema=schema).strip()
        if not raw:
            raise ValueError("Received an empty response from the AI model.")
        cleaned = raw.replace("```json", "").replace("```", "").strip()
        data = json.loads(cleaned)
        if not isinstance(data, dict):
            raise ValueError("Expected a JSON object from the AI model.")
    except Exception as exc:
        logger.error("%s Cause: %s", failure_message, exc)
        raise GenerationError(failure_message) from exc
    return data


def _normalize_quiz(data: dict[str, Any], fallback_topic: str, num_questions: int) -> QuizDraft:
    raw_questions = data.get("questions") if isinstance(data.get("questions"), list) else []
    questions = []
    for position, raw in enumerate(raw_questions[:num_questions], start=1):
        if not isinstance(raw, dict):
            raw = {}
        options = raw.get("options")
        if not (isinstance(options, list) and len(options) == OPTIONS_PER_QUESTION):
            options = list(DEFAULT_OPTION_LABELS)
        index = raw.get("correctAnswerIndex")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < OPTIONS_PER_QUESTION:
            index = 0
        questions.append(
            Question(
                question_text=str(raw.get("questionText") or f"Question {position}"),
                options=tuple(str(option) for option in options),
                correct_answer_index=index,
            )
        )
    topic = data.get("topic")
    return QuizDraft(topic=str(topic) if topic else fallback_topic, questions=tuple(questions))
