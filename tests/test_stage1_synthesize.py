"""Tests for Stage 1 content synthesis. No I/O; random draws use fixed seeds."""
import random
import re
from unittest.mock import patch

import pytest

from pipeline.stage1_synthesize import classify, content_words, fallback_document, image_prompts_for, run


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassify:
    def test_content_words_drop_short_and_stop_words(self):
        assert content_words("A story about the sea, with boats!") == ["story", "boats"]

    @pytest.mark.parametrize("topic,expected", [
        ("A tutorial on gardening", "educational"),
        ("Startup funding rounds", "business"),
        ("Programming embedded devices", "technical"),
        ("Poetry of the night", "creative"),
        ("sustainable urban living", "general"),
    ])
    def test_classes(self, topic, expected):
        assert classify(topic) == expected

    def test_first_match_wins_in_priority_order(self):
        # both "guide" (educational) and "business" match
        assert classify("Business guide for founders") == "educational"

    def test_short_keywords_are_not_matched(self):
        # three-letter words are dropped before matching
        assert classify("art") == "general"

    def test_four_letter_keyword_matches(self):
        assert classify("art code") == "technical"


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class TestRun:
    def test_empty_topic_raises(self):
        with pytest.raises(ValueError):
            run("   ")

    def test_sustainable_urban_living(self):
        doc = run("sustainable urban living", random.Random(7))
        assert doc.text.startswith("# Sustainable urban living: An In-depth Analysis")
        assert "## Introduction" in doc.text
        assert "## Conclusion" in doc.text
        assert len(doc.image_prompts) >= 3
        assert doc.recommended_style == "modern"

    @pytest.mark.parametrize("seed", range(10))
    def test_prompt_count_and_title(self, seed):
        doc = run("learn watercolor painting", random.Random(seed))
        assert 3 <= len(doc.image_prompts) <= 4
        title = doc.text.split("\n", 1)[0]
        assert "Learn watercolor painting" in title

    @pytest.mark.parametrize("seed", range(10))
    def test_section_and_paragraph_counts(self, seed):
        doc = run("sustainable urban living", random.Random(seed))
        sections = re.findall(r"^## (.+)$", doc.text, flags=re.MULTILINE)
        body = [s for s in sections if s not in ("Introduction", "Conclusion")]
        assert 2 <= len(body) <= 4
        assert body == ["Background", "Main Considerations", "Key Benefits", "Future Outlook"][:len(body)]

    def test_same_seed_same_document(self):
        assert run("data pipelines", random.Random(3)) == run("data pipelines", random.Random(3))

    def test_prompts_follow_sections(self):
        doc = run("software testing", random.Random(0))
        assert doc.image_prompts[0] == (
            "A photorealistic representation of software testing in the context of Technical Foundation"
        )
        assert doc.image_prompts[1].startswith("A detailed illustration showing software testing")

    @pytest.mark.parametrize("topic,style", [
        ("study habits", "classic"),
        ("software testing", "classic"),
        ("fiction writing", "magazine"),
        ("market trends", "modern"),
        ("mountain hiking", "modern"),
    ])
    def test_recommended_style(self, topic, style):
        assert run(topic, random.Random(0)).recommended_style == style

    def test_generation_failure_falls_back(self):
        with patch("pipeline.stage1_synthesize._synthesize", side_effect=RuntimeError("boom")):
            doc = run("volcanoes")
        assert doc == fallback_document("volcanoes")
        assert doc.text.startswith("# volcanoes")
        assert len(doc.image_prompts) == 3


def test_image_prompts_topped_up_to_three():
    prompts = image_prompts_for("tides", ["Background"])
    assert len(prompts) == 3
    assert prompts[1] == "A creative visualization of tides from a unique perspective"
