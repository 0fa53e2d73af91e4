"""Stage 1: Content synthesis — build a structured document from a topic.

Offline counterpart to the text analysis gateway: classifies the topic by
keyword, picks a title and a section list for that class, fills the sections
with templated sentences and derives one image prompt per section.

All random draws go through the `rng` argument so tests can fix the sequence.
Nothing is read or written.
"""
import logging
import random
import re

from models.document import Document

logger = logging.getLogger(__name__)

_STOP_WORDS = frozenset({
    "about", "with", "that", "this", "these", "those", "there", "their",
    "from", "have", "been",
})

# Checked in order; the first class with a matching keyword wins.
_CLASS_KEYWORDS: tuple[tuple[str, frozenset[str]], ...] = (
    ("educational", frozenset({"guide", "learn", "course", "tutorial", "education", "study", "teach"})),
    ("business", frozenset({"business", "market", "company", "startup", "enterprise", "corporate", "industry"})),
    ("technical", frozenset({"software", "hardware", "code", "programming", "technology", "system", "data"})),
    ("creative", frozenset({"art", "design", "creative", "story", "novel", "poetry", "fiction"})),
)

_TITLES = {
    "educational": "The Complete Guide to {topic}",
    "business": "{topic}: Market Analysis and Insights",
    "technical": "Understanding {topic}: Technical Overview",
    "creative": "Exploring {topic} Through Creative Expression",
    "general": "{topic}: An In-depth Analysis",
}

_SECTIONS = {
    "educational": ["Key Concepts", "Learning Approaches", "Practical Applications", "Future Directions"],
    "business": ["Market Overview", "Strategic Considerations", "Competitive Analysis", "Growth Opportunities"],
    "technical": ["Technical Foundation", "System Architecture", "Implementation Strategies", "Performance Optimization"],
    "creative": ["Creative Process", "Artistic Elements", "Inspiration Sources", "Expressive Techniques"],
    "general": ["Background", "Main Considerations", "Key Benefits", "Future Outlook"],
}

# {Topic}: capitalised topic, {topic}: lower-cased topic, {section}: lower-cased section
_SENTENCES = (
    "{Topic} provides significant advantages in the context of {section}.",
    "Many experts consider {topic} essential when discussing {section}.",
    "Research has shown that {topic} can dramatically improve outcomes related to {section}.",
    "When implementing {topic}, it's crucial to consider various aspects of {section}.",
    "The relationship between {topic} and {section} continues to evolve in interesting ways.",
    "Recent developments in {topic} have transformed our understanding of {section}.",
    "Organizations that effectively leverage {topic} often excel in {section}.",
    "A comprehensive approach to {topic} must address key elements of {section}.",
)

_PROMPT_PHRASINGS = (
    "A photorealistic representation of",
    "A detailed illustration showing",
    "An abstract visualization depicting",
    "A conceptual diagram explaining",
    "A high-quality infographic about",
)

_RECOMMENDED_STYLE = {
    "educational": "classic",
    "technical": "classic",
    "creative": "magazine",
    "business": "modern",
    "general": "modern",
}

MIN_PROMPTS = 3


def run(topic: str, rng: random.Random | None = None) -> Document:
    """Synthesize a document for `topic`.

    Raises ValueError for an empty topic. Any failure while generating falls
    back to a one-line document with three generic prompts.
    """
    if not topic or not topic.strip():
        raise ValueError("topic must not be empty")
    rng = rng or random.Random()

    try:
        document = _synthesize(topic, rng)
    except Exception as exc:
        logger.warning("Content synthesis failed for %r — using fallback: %s", topic, exc)
        return fallback_document(topic)

    logger.info("Stage 1 complete — %d chars, %d image prompts, style %s",
                len(document.text), len(document.image_prompts), document.recommended_style)
    return document


def fallback_document(topic: str) -> Document:
    return Document(
        text=f"# {topic}\n\nThis is a basic overview of {topic}. "
             "The content generation encountered an error.",
        image_prompts=[
            f"A visualization of {topic}",
            f"An illustration related to {topic}",
            f"A conceptual image of {topic}",
        ],
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def content_words(topic: str) -> list[str]:
    """Lower-cased words longer than three characters, stop words removed."""
    words = re.split(r"[\s.,!?;:()\[\]{}'\"]", topic.lower())
    return [w for w in words if len(w) > 3 and w not in _STOP_WORDS]


def classify(topic: str) -> str:
    words = content_words(topic)
    for name, keywords in _CLASS_KEYWORDS:
        if any(w in keywords for w in words):
            return name
    return "general"


# ---------------------------------------------------------------------------
# Document body
# ---------------------------------------------------------------------------

def _synthesize(topic: str, rng: random.Random) -> Document:
    topic_class = classify(topic)
    trimmed = topic.strip()
    capitalized = trimmed[0].upper() + trimmed[1:]
    lowered = topic.lower()

    parts = [f"# {_TITLES[topic_class].format(topic=capitalized)}\n\n"]
    parts.append("## Introduction\n\n")
    parts.append(
        f"{capitalized} has become increasingly important in today's rapidly evolving world. "
        f"This document explores the key aspects, benefits, and applications of {lowered}, "
        "providing valuable insights for readers interested in this subject.\n\n"
    )

    section_count = rng.randint(2, 4)
    sections = _SECTIONS[topic_class][:section_count]
    for section in sections:
        parts.append(f"## {section}\n\n")
        for _ in range(rng.randint(2, 3)):
            sentences = [
                rng.choice(_SENTENCES).format(
                    Topic=capitalized, topic=lowered, section=section.lower()
                )
                for _ in range(rng.randint(3, 5))
            ]
            parts.append(" ".join(sentences) + " \n\n")

    parts.append("## Conclusion\n\n")
    parts.append(
        f"In summary, {lowered} represents a critical area worthy of attention and further exploration. "
        "By understanding the key elements discussed in this document, readers can better appreciate "
        f"the significance and potential applications of {lowered} in various contexts. "
        f"As developments continue to emerge, the importance of staying informed about {lowered} "
        "will only increase in the coming years.\n\n"
    )

    return Document(
        text="".join(parts),
        image_prompts=image_prompts_for(topic, sections),
        recommended_style=_RECOMMENDED_STYLE[topic_class],
    )


def image_prompts_for(topic: str, sections: list[str]) -> list[str]:
    prompts = [
        f"{_PROMPT_PHRASINGS[i % len(_PROMPT_PHRASINGS)]} {topic} in the context of {section}"
        for i, section in enumerate(sections)
    ]
    while len(prompts) < MIN_PROMPTS:
        prompts.append(f"A creative visualization of {topic} from a unique perspective")
    return prompts
