"""Text-generation constants: model name, prompts and user-facing messages."""

DEFAULT_MODEL_NAME: str = "gemini-2.5-flash"

DEFAULT_NUM_QUESTIONS: int = 5
DEFAULT_DIFFICULTY: str = "Medium"
GENERATED_CONTENT_TOPIC: str = "Quiz from generated content"
LECTURE_QUIZ_TOPIC_TEMPLATE: str = "Quiz on: {topic}"

EMPTY_QUERY_MESSAGE: str = "Please enter a search query."
NO_RESULTS_MESSAGE: str = "I could not find any relevant information matching your search."
SEARCH_UNAVAILABLE_MESSAGE: str = "The AI search assistant is currently unavailable."
SERVICE_NOT_CONFIGURED_MESSAGE: str = "The text generation service is not configured."

QUIZ_TOPIC_PROMPT: str = (
    'Generate a quiz about "{topic}" with exactly {num_questions} multiple-choice questions. '
    "The difficulty level should be {difficulty}. Each question must have exactly 4 options. "
    "Ensure one option is clearly correct."
)

QUIZ_CONTENT_PROMPT: str = (
    "Generate a quiz based on the following content. Create exactly {num_questions} "
    "multiple-choice questions with a difficulty level of {difficulty}. Each question must "
    "have exactly 4 options. Ensure one option is clearly correct.\n\n"
    "Content:\n---\n{content}\n---"
)

LECTURE_PROMPT: str = (
    "Based on the following topic outline, generate a set of lecture slides. Each slide "
    "should have a clear title and several concise bullet points.\n\n"
    "Topic Outline:\n---\n{outline}\n---"
)

CASE_STUDY_PROMPT: str = (
    "Based on the following topic outline, generate a detailed case study. It should include "
    "a title, introduction, a central problem, a proposed solution, and a conclusion with key "
    "takeaways.\n\nTopic Outline:\n---\n{outline}\n---"
)

SUMMARY_PROMPT: str = "Summarize the following content for a student in a few key points:\n\n---\n{text}\n---"

TRANSLATION_PROMPT: str = "Translate the following text to {language}:\n\n---\n{text}\n---"

IMAGE_PROMPT: str = (
    "Describe this image and extract any text you see. Present the text first, then the description."
)

EXPLANATION_PROMPT: str = (
    "You are a helpful and friendly teaching assistant. Explain the following concept clearly, "
    "as if you were talking to a high school student. Use simple terms and provide a short, "
    'clear example to illustrate your point.\n\nStudent\'s question: "{question}"'
)

SEARCH_PROMPT: str = (
    "You are a helpful AI assistant for a classroom platform. Based ONLY on the following "
    "context, provide a concise answer to the user's question. Do not use any outside "
    "knowledge. If the answer is not found in the context, state that you could not find a "
    "definitive answer in the provided materials.\n\n"
    'Context:\n---\n{context}\n---\n\nUser Question: "{query}"'
)
