"""Keyword retrieval over classroom material feeding a grounded AI answer.

Retrieval is a plain scan: an item is a candidate when any query keyword
occurs in its flattened text. There is no ranking; candidates keep scan
order (quizzes, lectures, case studies, shared content, FAQs).
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from threading import Lock
from typing import Sequence

from classroom_app.constants.ai_constants import (
    EMPTY_QUERY_MESSAGE,
    NO_RESULTS_MESSAGE,
    SEARCH_PROMPT,
    SEARCH_UNAVAILABLE_MESSAGE,
)
from classroom_app.core.errors import SearchUnavailableError
from classroom_app.core.generation.text_generator import TextGenerator
from classroom_app.core.models import FAQ, CaseStudy, GeneratedLecture, Quiz, SharedContent, TextContent

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class KnowledgeBase:
    quizzes: Sequence[Quiz] = ()
    lectures: Sequence[GeneratedLecture] = ()
    case_studies: Sequence[CaseStudy] = ()
    shared_content: Sequence[SharedContent] = ()
    faqs: Sequence[FAQ] = ()


@dataclass(slots=True, frozen=True)
class SearchSource:
    name: str
    type: str


@dataclass(slots=True, frozen=True)
class RetrievedDocument:
    name: str
    type: str
    content: str

    @property
    def source(self) -> SearchSource:
        return SearchSource(name=self.name, type=self.type)


@dataclass(slots=True, frozen=True)
class SearchResult:
    answer: str
    sources: tuple[SearchSource, ...] = ()
    documents: tuple[RetrievedDocument, ...] = field(default=(), repr=False)


def extract_keywords(query: str) -> list[str]:
    return [keyword for keyword in query.lower().split() if keyword]


def flatten_quiz(quiz: Quiz) -> str:
    questions = " ".join(question.question_text for question in quiz.questions)
    return f"Topic: {quiz.topic}. Questions: {questions}"


def flatten_lecture(lecture: GeneratedLecture) -> str:
    slides = ". ".join(f"{slide.title}: {' '.join(slide.points)}" for slide in lecture.slides)
    return f"Topic: {lecture.topic}. Slides: {slides}"


def flatten_case_study(study: CaseStudy) -> str:
    return (
        f"Title: {study.title}. Content: {study.introduction} {study.problem} "
        f"{study.solution} {study.conclusion}"
    )


def flatten_shared_content(item: SharedContent) -> str:
    body = f"Content: {item.content}" if isinstance(item, TextContent) else f"File: {item.file_name}"
    return f"Title: {item.title}. Description: {item.description}. {body}"


def flatten_faq(faq: FAQ) -> str:
    return f"Question: {faq.question}. Answer: {faq.answer}"


def _documents(knowledge_base: KnowledgeBase) -> list[RetrievedDocument]:
    docs = [RetrievedDocument(q.topic, "Quiz", flatten_quiz(q)) for q in knowledge_base.quizzes]
    docs += [RetrievedDocument(lec.topic, "Lecture", flatten_lecture(lec)) for lec in knowledge_base.lectures]
    docs += [RetrievedDocument(c.title, "Case Study", flatten_case_study(c)) for c in knowledge_base.case_studies]
    docs += [
        RetrievedDocument(s.title, "Shared Content", flatten_shared_content(s))
        for s in knowledge_base.shared_content
    ]
    docs += [RetrievedDocument(f.question, "FAQ", flatten_faq(f)) for f in knowledge_base.faqs]
    return docs


def retrieve(query: str, knowledge_base: KnowledgeBase) -> list[RetrievedDocument]:
    """Return every item whose flattened text contains at least one keyword."""
    keywords = extract_keywords(query)
    if not keywords:
        return []
    return [
        doc
        for doc in _documents(knowledge_base)
        if any(keyword in doc.content.lower() for keyword in keywords)
    ]


def build_context(documents: Sequence[RetrievedDocument]) -> str:
    return "\n\n---\n\n".join(f"Source ({doc.type}): {doc.name}\nContent: {doc.content}" for doc in documents)


def search(query: str, knowledge_base: KnowledgeBase, generator: TextGenerator) -> SearchResult:
    """Answer ``query`` from the knowledge base only.

    Raises:
        SearchUnavailableError: the text-generation service failed.
    """
    if not extract_keywords(query):
        return SearchResult(answer=EMPTY_QUERY_MESSAGE)

    documents = retrieve(query, knowledge_base)
    if not documents:
        return SearchResult(answer=NO_RESULTS_MESSAGE)

    prompt = SEARCH_PROMPT.format(context=build_context(documents), query=query)
    try:
        answer = generator.generate(prompt)
    except Exception as exc:
        logger.error("Error with smart search generation: %s", exc)
        raise SearchUnavailableError(SEARCH_UNAVAILABLE_MESSAGE) from exc

    return SearchResult(
        answer=answer,
        sources=tuple(doc.source for doc in documents),
        documents=tuple(documents),
    )


class SearchSession:
    """Discards answers from searches that a newer search has superseded.

    In-flight calls are never cancelled; their results are simply dropped.
    """

    def __init__(self, generator: TextGenerator) -> None:
        self._generator = generator
        self._lock = Lock()
        self._generation: int = 0

    def get_generation(self) -> int:
        with self._lock:
            return self._generation

    def supersede(self) -> int:
        """Invalidate any in-flight search and return the new generation."""
        with self._lock:
            self._generation += 1
            return self._generation

    def run(self, query: str, knowledge_base: KnowledgeBase) -> SearchResult | None:
        """Run a search; returns ``None`` if another search started meanwhile."""
        generation = self.supersede()
        result = search(query, knowledge_base, self._generator)
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding superseded search result for %r", query)
                return None
        return result
