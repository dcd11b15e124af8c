#!/usr/bin/env python3
"""
Accuracy benchmark: run labelled queries through the intent matcher.
"""

import argparse
import asyncio
import json
import os
import re
import time
from typing import Any, Dict, List
from rich.console import Console
from rich.progress import Progress
from rich.table import Table
from dotenv import load_dotenv

from college_chatbot.config_parser import ConfigParser, DEFAULT_KNOWLEDGE_BASE
from college_chatbot.intent_matcher import IntentMatcher, MatchReason
from college_chatbot.providers import create_embedding_provider

# Load environment
load_dotenv()

FALLBACK_LABEL = "default"


class QueryBenchmarkRunner:
    """Runs labelled queries against a prepared matcher and summarises accuracy."""

    def __init__(self, matcher: IntentMatcher, console: Console = None):
        self.matcher = matcher
        self.console = console or Console()
        self.results: List[Dict[str, Any]] = []

    @staticmethod
    def parse_test_queries(file_path: str) -> List[Dict[str, Any]]:
        """
        Parse the benchmark file.

        Format, one per line: ``12. query text | expected_intent``. Blank
        lines and lines starting with '#' are ignored.
        """
        queries = []

        with open(file_path, 'r', encoding='utf-8') as f:
            lines = f.readlines()

        for line in lines:
            line = line.strip()
            if line and not line.startswith('#') and '|' in line:
                parts = [p.strip() for p in line.split('|')]
                match = re.match(r'(\d+)\.\s*(.+)', parts[0])
                if match and len(parts) >= 2:
                    queries.append({
                        'id': int(match.group(1)),
                        'query': match.group(2),
                        'expected_intent': parts[1]
                    })

        return queries

    async def run_query(self, query_data: Dict[str, Any]) -> Dict[str, Any]:
        start_time = time.time()
        outcome = await self.matcher.match_with_reason(query_data['query'])
        query_time = time.time() - start_time

        if outcome.reason == MatchReason.MATCHED:
            predicted = outcome.intent
        elif outcome.reason == MatchReason.BELOW_THRESHOLD:
            predicted = FALLBACK_LABEL
        else:
            predicted = None

        return {
            **query_data,
            'predicted_intent': predicted,
            'best_intent': outcome.intent,
            'confidence': outcome.score,
            'reason': outcome.reason.value,
            'response': outcome.text,
            'correct': predicted == query_data['expected_intent'],
            'query_time': query_time
        }

    async def run_all_tests(self, queries: List[Dict[str, Any]]) -> None:
        """Run every query in order and collect results."""
        self.console.print(f"[bold blue]🧪 Running {len(queries)} test queries...[/bold blue]")

        with Progress(console=self.console) as progress:
            task = progress.add_task("Processing queries...", total=len(queries))
            for query_data in queries:
                self.results.append(await self.run_query(query_data))
                progress.update(task, advance=1)

        self.console.print(f"[green]✅ Completed all {len(queries)} tests[/green]")

    def analyze_results(self) -> Dict[str, Any]:
        """Analyze test results and generate summary."""
        if not self.results:
            return {}

        answered = [r for r in self.results if r['predicted_intent'] is not None]
        errors = [r for r in self.results if r['predicted_intent'] is None]

        confidences = [r['confidence'] for r in answered if r['confidence'] is not None]
        avg_confidence = sum(confidences) / len(confidences) if confidences else 0

        times = [r['query_time'] for r in self.results]

        per_intent: Dict[str, Dict[str, int]] = {}
        for result in answered:
            counts = per_intent.setdefault(result['expected_intent'], {'total': 0, 'correct': 0})
            counts['total'] += 1
            counts['correct'] += int(result['correct'])

        correct = sum(1 for r in answered if r['correct'])

        return {
            'total_queries': len(self.results),
            'answered': len(answered),
            'errors': len(errors),
            'intent_accuracy': correct / len(answered) if answered else 0,
            'fallback_rate': sum(1 for r in answered if r['predicted_intent'] == FALLBACK_LABEL) / len(answered)
            if answered else 0,
            'avg_confidence': avg_confidence,
            'avg_query_time': sum(times) / len(times),
            'per_intent': per_intent,
            'threshold': self.matcher.confidence_threshold
        }

    def save_results(self, output_file: str) -> None:
        """Save detailed results to file."""
        output_data = {
            'summary': self.analyze_results(),
            'detailed_results': self.results,
            'generated_at': time.strftime('%Y-%m-%d %H:%M:%S')
        }

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=2, ensure_ascii=False)

        self.console.print(f"[green]📊 Results saved to {output_file}[/green]")

    def print_summary(self) -> None:
        """Print summary of test results."""
        analysis = self.analyze_results()
        if not analysis:
            self.console.print("[yellow]No results to summarise[/yellow]")
            return

        table = Table(title="🧪 Benchmark Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Total Queries", str(analysis['total_queries']))
        table.add_row("Provider Errors", str(analysis['errors']))
        table.add_row("Intent Accuracy", f"{analysis['intent_accuracy']:.1%}")
        table.add_row("Fallback Rate", f"{analysis['fallback_rate']:.1%}")
        table.add_row("Avg Confidence", f"{analysis['avg_confidence']:.3f}")
        table.add_row("Avg Time per Query", f"{analysis['avg_query_time']:.3f}s")
        table.add_row("Threshold", str(analysis['threshold']))

        self.console.print(table)

        misses = [r for r in self.results if not r['correct']]
        if misses:
            miss_table = Table(title="Misclassified Queries")
            miss_table.add_column("#", style="cyan", width=4)
            miss_table.add_column("Query", style="white")
            miss_table.add_column("Expected", style="green")
            miss_table.add_column("Got", style="red")
            miss_table.add_column("Score", style="yellow")
            for r in misses:
                score = f"{r['confidence']:.3f}" if r['confidence'] is not None else r['reason']
                miss_table.add_row(str(r['id']), r['query'], r['expected_intent'], str(r['predicted_intent']), score)
            self.console.print(miss_table)


async def run_benchmark(args) -> QueryBenchmarkRunner:
    console = Console()
    provider = create_embedding_provider(args.provider, args.model)
    matcher = IntentMatcher(provider, confidence_threshold=args.threshold)

    with console.status("[bold green]Preparing knowledge base..."):
        await matcher.prepare(ConfigParser.from_file(args.knowledge_base))

    runner = QueryBenchmarkRunner(matcher, console)
    await runner.run_all_tests(runner.parse_test_queries(args.queries))
    runner.print_summary()
    runner.save_results(args.output)
    return runner


def main():
    """Main execution."""
    parser = argparse.ArgumentParser(description="Intent matching accuracy benchmark")
    parser.add_argument('--queries', default='benchmark_queries.txt', help='Labelled query file')
    parser.add_argument('--output', default='benchmark_results.json', help='Where to write detailed results')
    parser.add_argument('--knowledge-base',
                        default=os.getenv('KNOWLEDGE_BASE_PATH', str(DEFAULT_KNOWLEDGE_BASE)))
    parser.add_argument('--threshold', type=float, default=float(os.getenv('SIMILARITY_THRESHOLD', '0.8')))
    parser.add_argument('--provider', choices=['openai', 'local'], default=os.getenv('EMBEDDING_PROVIDER', 'openai'))
    parser.add_argument('--model', default=None)
    args = parser.parse_args()

    asyncio.run(run_benchmark(args))


if __name__ == '__main__':
    main()
