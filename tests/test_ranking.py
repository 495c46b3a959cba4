"""
Tests for the ranking step.
"""

import asyncio
import json

import pytest

from app.ai.prompt_engine import assign_labels, build_ranking_message
from app.services import ranking_service
from app.services.pricing import load_price_table
from app.services.ranking_service import RankingError, parse_verdict, rank_prompts
from app.utils.llm_client import Completion, ProviderError

PROMPTS = {"gemini": "G prompt", "claude": "C prompt", "deepseek": "D prompt"}

VERDICT = {
    "ranking": ["B", "A", "C"],
    "scores": {
        "A": {"clarity": 7, "completeness": 8, "adherence": 7, "usability": 8},
        "B": {"clarity": 9, "completeness": 9, "adherence": 9, "usability": 9},
        "C": {"clarity": 5, "completeness": 6, "adherence": 6, "usability": 5},
    },
    "explanation": "B is the most complete.",
    "winner": "B",
}


def judge_returning(payload, input_tokens=2000, output_tokens=1000, calls=None):
    async def _judge(system_prompt, user_message, model=None):
        if calls is not None:
            calls.append(user_message)
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return Completion("openai", model or "gpt-4o", text, input_tokens, output_tokens)
    return _judge


def rank(db, prompts=PROMPTS):
    return asyncio.run(rank_prompts("rtf", "Write a memo", prompts, load_price_table(db)))


class TestLabels:

    def test_labels_follow_provider_order(self):
        assert assign_labels(PROMPTS) == {"A": "gemini", "B": "claude", "C": "deepseek"}

    def test_missing_prompts_are_skipped(self):
        assert assign_labels({"gemini": None, "claude": "C", "deepseek": "D"}) == {"A": "claude", "B": "deepseek"}

    def test_message_only_mentions_candidates(self):
        prompts = {"gemini": None, "claude": "C prompt", "deepseek": "D prompt"}
        message = build_ranking_message("RTF", "task", prompts, assign_labels(prompts))
        assert "PROMPT A (Claude):\nC prompt" in message
        assert "PROMPT B (DeepSeek):\nD prompt" in message
        assert "Gemini" not in message


class TestParseVerdict:
    labels = {"A": "gemini", "B": "claude", "C": "deepseek"}

    def test_maps_labels_to_providers(self):
        verdict = parse_verdict(json.dumps(VERDICT), self.labels)
        assert verdict.winner == "claude"
        assert verdict.ranking == ["claude", "gemini", "deepseek"]
        assert verdict.scores["claude"].clarity == 9

    def test_not_json(self):
        with pytest.raises(RankingError):
            parse_verdict("The winner is B", self.labels)

    def test_unknown_winner(self):
        with pytest.raises(RankingError):
            parse_verdict(json.dumps({**VERDICT, "winner": "D"}), self.labels)

    def test_winner_defaults_to_first_ranked(self):
        data = {k: v for k, v in VERDICT.items() if k != "winner"}
        assert parse_verdict(json.dumps(data), self.labels).winner == "claude"

    def test_scores_as_list(self):
        data = {**VERDICT, "scores": [{"candidate": "A", "clarity": 9}]}
        with pytest.raises(RankingError):
            parse_verdict(json.dumps(data), self.labels)

    def test_ranking_as_string(self):
        with pytest.raises(RankingError):
            parse_verdict(json.dumps({**VERDICT, "ranking": "B, A, C"}), self.labels)

    def test_score_entry_not_an_object(self):
        data = {**VERDICT, "scores": {"A": [9, 9, 9, 9]}}
        with pytest.raises(RankingError):
            parse_verdict(json.dumps(data), self.labels)


class TestRankPrompts:

    def test_ranks_and_prices(self, db, monkeypatch):
        monkeypatch.setattr(ranking_service, "run_json_completion", judge_returning(VERDICT))
        result = rank(db)

        assert result.verdict.winner == "claude"
        # gpt-4o: 2000/1000 * 0.005 + 1000/1000 * 0.015
        assert result.cost == pytest.approx(0.025)
        assert result.to_dict()["tokens"] == {"input": 2000, "output": 1000}

    def test_only_non_null_prompts_are_sent(self, db, monkeypatch):
        calls = []
        monkeypatch.setattr(
            ranking_service,
            "run_json_completion",
            judge_returning({"ranking": ["B", "A"], "winner": "B", "explanation": "x"}, calls=calls),
        )
        result = rank(db, {"gemini": "G prompt", "claude": None, "deepseek": "D prompt"})

        assert result.verdict.winner == "deepseek"
        assert "C prompt" not in calls[0]
        assert "PROMPT C" not in calls[0]

    def test_single_candidate_wins_without_a_call(self, db, monkeypatch):
        async def never(*args, **kwargs):
            raise AssertionError("judge should not be called")

        monkeypatch.setattr(ranking_service, "run_json_completion", never)
        result = rank(db, {"gemini": None, "claude": "C prompt", "deepseek": None})

        assert result.verdict.winner == "claude"
        assert result.cost == 0

    def test_no_candidates(self, db):
        with pytest.raises(RankingError):
            rank(db, {"gemini": None, "claude": None, "deepseek": None})

    def test_provider_failure_becomes_ranking_error(self, db, monkeypatch):
        async def down(*args, **kwargs):
            raise ProviderError("openai", "503")

        monkeypatch.setattr(ranking_service, "run_json_completion", down)
        with pytest.raises(RankingError):
            rank(db)
