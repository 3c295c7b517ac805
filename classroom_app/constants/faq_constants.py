"""Built-in FAQ entries offered to every classroom."""

DEFAULT_FAQS: tuple[tuple[str, str], ...] = (
    (
        "How do I generate a quiz?",
        "As a teacher, navigate to the 'Quiz Generation' tab. You can either enter a topic "
        "manually or select a previously generated lecture to create a quiz from.",
    ),
    (
        "Where can I see my quiz results?",
        "As a student, after completing a quiz, your results will be shown immediately. You can "
        "view your full history and performance analytics on the 'Analysis' page.",
    ),
    (
        "How do I share a file with students?",
        "In the Teacher Dashboard, go to the 'Shared Content' page. You can upload files, images, "
        "or share text-based content using the form provided.",
    ),
    (
        "How do I find my class code?",
        "As a teacher, your unique class code is displayed prominently on your dashboard's Home "
        "page. Share this with your students so they can join.",
    ),
)
