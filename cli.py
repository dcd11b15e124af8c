#!/usr/bin/env python3
"""
Command Line Interface for the Vivekanand College chatbot
"""

import argparse
import asyncio
import sys
import json
import os
import warnings
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Prompt
from rich import print as rprint
from loguru import logger
from dotenv import load_dotenv

# Suppress all warnings for clean output
warnings.filterwarnings("ignore", message="urllib3 v2 only supports OpenSSL")
warnings.filterwarnings("ignore", category=UserWarning)

from college_chatbot.config_parser import ConfigParser, DEFAULT_KNOWLEDGE_BASE
from college_chatbot.connectivity import SocketConnectivityOracle, StaticConnectivity
from college_chatbot.errors import ProviderError, SessionBusyError
from college_chatbot.intent_matcher import IntentMatcher, MatchReason, rank_intents
from college_chatbot.providers import create_embedding_provider
from college_chatbot.session import ChatSession

# Load environment variables
load_dotenv()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    logger.remove()  # Remove default handler

    if verbose:
        logger.add(sys.stderr, level="DEBUG", format="<green>{time}</green> | <level>{level: <8}</level> | {message}")
    else:
        # Only show warnings and errors, not INFO
        logger.add(sys.stderr, level="WARNING", format="<level>{level: <8}</level> | {message}")


def build_matcher(args) -> IntentMatcher:
    """Create an (unprepared) matcher from CLI arguments."""
    provider = create_embedding_provider(args.provider, args.model, args.timeout)
    connectivity = StaticConnectivity(True) if args.skip_connectivity_check else SocketConnectivityOracle()
    return IntentMatcher(provider, confidence_threshold=args.threshold, connectivity=connectivity)


async def prepare_matcher(args, console: Console):
    """Load the knowledge base and build its embeddings."""
    knowledge_base = ConfigParser.from_file(args.knowledge_base)
    matcher = build_matcher(args)

    with console.status("[bold green]Initializing knowledge base... Please wait."):
        await matcher.prepare(knowledge_base)

    return matcher, knowledge_base


async def prepare_command(args):
    """Build the prepared knowledge base and show statistics."""
    console = Console()
    matcher, knowledge_base = await prepare_matcher(args, console)

    stats = matcher.get_stats()
    kb_stats = stats['knowledge_base_stats']
    embed_stats = stats['embedding_stats']

    table = Table(title="Knowledge Base Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Knowledge Base", str(args.knowledge_base))
    table.add_row("Total Intents", str(kb_stats['total_intents']))
    table.add_row("Matchable Intents", str(kb_stats['matchable_intents']))
    table.add_row("Example Phrases", str(kb_stats['total_examples']))
    table.add_row("Embedding Dimension", str(kb_stats['embedding_dimension']))
    table.add_row("Similarity Threshold", str(matcher.confidence_threshold))
    table.add_row("Model", f"{embed_stats.get('model_name')} ({embed_stats.get('engine_type')})")

    console.print(table)

    intents_table = Table(title="Intents")
    intents_table.add_column("Intent", style="green")
    intents_table.add_column("Examples", style="yellow")
    for meta in knowledge_base.get_intent_metadata():
        label = "fallback" if meta['is_default'] else str(meta['example_count'])
        intents_table.add_row(meta['intent'], label)
    console.print(intents_table)


async def ask_command(args):
    """Answer a single query and show how each intent scored."""
    console = Console()
    matcher, _ = await prepare_matcher(args, console)

    outcome = await matcher.match_with_reason(args.query)

    if outcome.reason in (MatchReason.MATCHED, MatchReason.BELOW_THRESHOLD):
        ranked = rank_intents(matcher.last_query_embedding, matcher.knowledge_base)

        scores_table = Table(title=f"Intent Scores for: '{args.query}'")
        scores_table.add_column("Rank", style="cyan", width=4)
        scores_table.add_column("Intent", style="green", width=20)
        scores_table.add_column("Score", style="yellow", width=8)
        scores_table.add_column("Status", style="white", width=18)

        for i, (intent_name, score) in enumerate(ranked[:args.top_k], 1):
            passed = score >= matcher.confidence_threshold
            status_style = "green" if passed else "red"
            status = "✅ MATCH" if passed else "❌ Below threshold"
            scores_table.add_row(str(i), intent_name, f"{score:.3f}", f"[{status_style}]{status}[/{status_style}]")

        console.print(scores_table)
        console.print()

    if outcome.reason == MatchReason.MATCHED:
        panel = Panel(
            f"[green]✅ Intent Matched[/green]\n\n"
            f"[bold]Intent:[/bold] {outcome.intent}\n"
            f"[bold]Confidence:[/bold] {outcome.score:.3f}\n\n"
            f"[bold]Response:[/bold] {outcome.text}",
            title="Chatbot Response"
        )
    elif outcome.reason == MatchReason.BELOW_THRESHOLD:
        panel = Panel(
            f"[red]❌ No Intent Above Threshold[/red]\n\n"
            f"[bold]Best Score:[/bold] {outcome.score:.3f} (from {outcome.intent})\n"
            f"[bold]Similarity Threshold:[/bold] {matcher.confidence_threshold}\n\n"
            f"[bold]Response:[/bold] {outcome.text}",
            title="Fallback Response"
        )
    else:
        panel = Panel(
            f"[yellow]⚠️  {outcome.reason.value}[/yellow]\n\n[bold]Response:[/bold] {outcome.text}",
            title="Chatbot Response"
        )

    console.print(panel)


async def chat_command(args):
    """Start an interactive chat session."""
    console = Console()
    console.print("[bold blue]🤖 Educational Chatbot[/bold blue]")
    console.print("Type 'quit' to exit, 'stats' for statistics, 'help' for commands\n")

    matcher, _ = await prepare_matcher(args, console)
    session = ChatSession(matcher)

    for message in session.transcript():
        console.print(f"[bold green]Bot:[/bold green] {message.text}")
    console.print()

    while True:
        try:
            query = Prompt.ask("[bold cyan]You")

            if query.lower() == 'quit':
                break
            elif query.lower() == 'stats':
                rprint(json.dumps(matcher.get_stats(), indent=2))
                continue
            elif query.lower() == 'help':
                console.print("""
[bold]Available commands:[/bold]
- quit: Exit the chat
- stats: Show system statistics
- help: Show this help message
- Any other text: Ask the chatbot
                """)
                continue

            with console.status("Typing..."):
                reply = await session.send(query)

            if reply is not None:
                console.print(f"[bold green]Bot:[/bold green] {reply}\n")

        except (KeyboardInterrupt, EOFError):
            console.print("\n[yellow]Goodbye![/yellow]")
            break
        except SessionBusyError as e:
            console.print(f"[red]{e}[/red]")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Vivekanand College Chatbot CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py prepare                        # Embed the knowledge base and show statistics
  python cli.py ask "What courses do you offer?"
  python cli.py chat                           # Start an interactive chat
  python cli.py --threshold 0.75 chat          # Chat with a custom threshold
        """
    )

    # Global arguments
    parser.add_argument('--knowledge-base',
                        default=os.getenv('KNOWLEDGE_BASE_PATH', str(DEFAULT_KNOWLEDGE_BASE)),
                        help='Path to the knowledge base YAML file')
    parser.add_argument('--threshold', type=float,
                        default=float(os.getenv('SIMILARITY_THRESHOLD', '0.8')),
                        help=f'Similarity threshold for intent matching (default: {os.getenv("SIMILARITY_THRESHOLD", "0.8")})')
    parser.add_argument('--provider', choices=['openai', 'local'],
                        default=os.getenv('EMBEDDING_PROVIDER', 'openai'),
                        help='Embedding provider to use')
    parser.add_argument('--model', default=None,
                        help='Embedding model name (provider default when omitted)')
    parser.add_argument('--timeout', type=float,
                        default=float(os.getenv('EMBEDDING_TIMEOUT', '15')),
                        help='Seconds to wait for each embedding call')
    parser.add_argument('--skip-connectivity-check', action='store_true',
                        help='Assume the client is online')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')

    # Subcommands
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('prepare', help='Embed the knowledge base and show statistics')

    ask_parser = subparsers.add_parser('ask', help='Answer a single query')
    ask_parser.add_argument('query', help='Query string to answer')
    ask_parser.add_argument('--top-k', type=int, default=5, help='Number of intent scores to show')

    subparsers.add_parser('chat', help='Start an interactive chat')

    args = parser.parse_args()

    # Setup logging
    setup_logging(args.verbose)

    commands = {
        'prepare': prepare_command,
        'ask': ask_command,
        'chat': chat_command,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(commands[args.command](args))
    except ProviderError as e:
        # Raised while preparing the knowledge base
        Console().print(f"[red]Could not prepare the knowledge base ({e.kind.value}): {e.message}[/red]")
        sys.exit(2)


if __name__ == '__main__':
    main()
