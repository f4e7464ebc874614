"""
Unit tests for the content heuristics.
"""
import pytest

from siteaudit.services.content_analyzer import (
    analyze_content,
    analyze_keywords,
    calculate_readability,
    classify_intent,
    evaluate_uniqueness,
    round_half_up,
)


class TestKeywords:
    def test_empty_input(self):
        result = analyze_keywords("", "", "")

        assert result.total_words == 0
        assert result.top_keywords == []
        assert result.semantic_relevance == "Needs Improvement"

    def test_stop_words_and_short_tokens_dropped(self):
        result = analyze_keywords("the cat and the dog ran to it")

        words = [k.word for k in result.top_keywords]
        assert "the" not in words
        assert "and" not in words
        assert "to" not in words
        assert set(words) == {"cat", "dog", "ran"}

    def test_title_words_rank_first_and_are_high(self):
        text = "spade spade spade spade rake rake pruner"
        result = analyze_keywords(text, title="Pruner guide")

        top = result.top_keywords[0]
        assert top.word == "pruner"
        assert top.relevance == "High"
        assert result.semantic_relevance == "Good"
        spade = next(k for k in result.top_keywords if k.word == "spade")
        assert spade.relevance == "Medium"

    def test_density(self):
        result = analyze_keywords("garden garden tools")

        garden = result.top_keywords[0]
        assert garden.word == "garden"
        assert garden.count == 2
        assert garden.density == pytest.approx(66.67)

    def test_ties_keep_first_seen_order(self):
        result = analyze_keywords("zebra apple mango")

        assert [k.word for k in result.top_keywords] == ["zebra", "apple", "mango"]

    def test_top_ten_only(self):
        text = " ".join(f"word{chr(97 + i)}xx" for i in range(15))
        result = analyze_keywords(text)

        assert result.unique_words == 15
        assert len(result.top_keywords) == 10

    def test_non_ascii_letters_split_tokens(self):
        result = analyze_keywords("café")

        assert [k.word for k in result.top_keywords] == ["caf"]


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [
        (50.5, 51),
        (49.5, 50),
        (0.5, 1),
        (50.4999, 50),
        (100.0, 100),
        (0.0, 0),
    ])
    def test_halves_go_up(self, value, expected):
        assert round_half_up(value) == expected


class TestReadability:
    def test_empty_text_is_fifty(self):
        assert calculate_readability("") == 50

    def test_no_sentence_text_is_fifty(self):
        assert calculate_readability("...") == 50

    def test_simple_text_scores_high(self):
        score = calculate_readability("The cat sat. The dog ran. We had fun.")

        assert score == 100

    def test_dense_text_is_clamped_to_zero(self):
        text = "Incomprehensibilities notwithstanding, institutionalization characteristically overcomplicates organizational responsibilities"
        assert calculate_readability(text) == 0

    @pytest.mark.parametrize("text", [
        "a",
        "Hello world.",
        "One two three four five six seven eight nine ten eleven twelve.",
        "Why? Because! Fine.",
    ])
    def test_always_in_range(self, text):
        assert 0 <= calculate_readability(text) <= 100


class TestUniqueness:
    def test_zero_length_text(self):
        result = evaluate_uniqueness("", "", "")

        assert result.word_count == 0
        assert result.score == 30

    def test_well_formed_page(self):
        sentence = " ".join(["word"] * 19) + " end."
        text = " ".join([sentence] * 20)
        title = "A" * 45
        description = "B" * 140

        result = evaluate_uniqueness(text, title, description)

        assert result.word_count == 400
        assert result.sentence_count == 20
        assert result.avg_words_per_sentence == 20.0
        # 50 + 20 words + 15 meta + 10 title + 10 description + 5 sentences
        assert result.score == 100

    def test_long_text_bonus(self):
        result = evaluate_uniqueness("word " * 2500)

        assert result.score == 65

    @pytest.mark.parametrize("words,title,description", [
        (0, "", ""),
        (5, "x" * 500, "y" * 5000),
        (10000, "t" * 40, "d" * 130),
    ])
    def test_always_in_range(self, words, title, description):
        result = evaluate_uniqueness("word " * words, title, description)

        assert 0 <= result.score <= 100


class TestIntent:
    def test_empty_content(self):
        result = classify_intent("", "", "")

        assert result.confidence == 0
        assert result.primary_intent == "informational"
        assert result.aligned is False

    def test_transactional(self):
        result = classify_intent("Buy now: best price, big discount in our shop sale")

        assert result.primary_intent == "transactional"
        assert result.intent_scores["transactional"] == 5
        assert result.confidence == 50
        assert result.aligned is True

    def test_ties_follow_declaration_order(self):
        # one informational ("guide") vs one commercial ("compare")
        result = classify_intent("guide compare")

        assert result.primary_intent == "informational"

    def test_confidence_capped(self):
        result = classify_intent("login account dashboard home contact sign in")

        assert result.primary_intent == "navigational"
        assert result.confidence == 100


class TestAnalyzeContent:
    def test_empty_scenario(self):
        analysis = analyze_content("", "", "")

        assert analysis.keywords.total_words == 0
        assert analysis.keywords.top_keywords == []
        assert analysis.intent.confidence == 0
        assert analysis.readability_score == 50

    def test_score_summary(self):
        analysis = analyze_content("How to learn gardening. A short guide.", "Gardening guide", "")

        score = analysis.score
        assert score.intent == "informational"
        assert score.readability_score == analysis.readability_score
        assert score.uniqueness_score == analysis.uniqueness.score

        data = analysis.to_dict()
        assert data["score"]["intent"] == "informational"
        assert data["keywords"]["top_keywords"][0]["relevance"] == "High"
