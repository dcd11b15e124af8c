"""Unit tests for the accuracy benchmark runner."""

import json

import pytest
from rich.console import Console

from benchmark_runner import QueryBenchmarkRunner
from college_chatbot.errors import ProviderError, ProviderErrorKind


@pytest.fixture
def queries_file(tmp_path):
    path = tmp_path / "queries.txt"
    path.write_text(
        "# comment line\n"
        "\n"
        "1. hello there | greeting\n"
        "2. xyz123 | default\n"
        "3. which programs are available | fees\n"
        "not a numbered line | greeting\n",
        encoding="utf-8",
    )
    return path


class TestQueryBenchmarkRunner:

    def test_parse_test_queries(self, queries_file):
        queries = QueryBenchmarkRunner.parse_test_queries(str(queries_file))

        assert queries == [
            {"id": 1, "query": "hello there", "expected_intent": "greeting"},
            {"id": 2, "query": "xyz123", "expected_intent": "default"},
            {"id": 3, "query": "which programs are available", "expected_intent": "fees"},
        ]

    @pytest.mark.asyncio
    async def test_run_and_analyze(self, matcher, college_knowledge_base, queries_file, tmp_path):
        await matcher.prepare(college_knowledge_base)
        runner = QueryBenchmarkRunner(matcher, Console(quiet=True))

        await runner.run_all_tests(runner.parse_test_queries(str(queries_file)))
        summary = runner.analyze_results()

        assert [r["predicted_intent"] for r in runner.results] == ["greeting", "default", "courses"]
        assert summary["total_queries"] == 3
        assert summary["errors"] == 0
        assert summary["intent_accuracy"] == pytest.approx(2 / 3)
        assert summary["fallback_rate"] == pytest.approx(1 / 3)
        assert summary["per_intent"]["fees"] == {"total": 1, "correct": 0}

        output = tmp_path / "results.json"
        runner.print_summary()
        runner.save_results(str(output))
        saved = json.loads(output.read_text(encoding="utf-8"))
        assert saved["summary"]["total_queries"] == 3
        assert len(saved["detailed_results"]) == 3

    @pytest.mark.asyncio
    async def test_provider_errors_are_counted(self, matcher, college_knowledge_base, embedding_provider):
        await matcher.prepare(college_knowledge_base)
        embedding_provider.embed.side_effect = ProviderError(ProviderErrorKind.RATE_LIMITED, "429")
        runner = QueryBenchmarkRunner(matcher, Console(quiet=True))

        await runner.run_all_tests([{"id": 1, "query": "hello there", "expected_intent": "greeting"}])

        summary = runner.analyze_results()
        assert summary["errors"] == 1
        assert summary["answered"] == 0
        assert runner.results[0]["reason"] == "rate_limited"

    def test_empty_results(self, matcher):
        assert QueryBenchmarkRunner(matcher, Console(quiet=True)).analyze_results() == {}
