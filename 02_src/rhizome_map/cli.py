"""Command-line entry point: run a reading through the mapping pipeline and save it."""

import argparse
import asyncio
from pathlib import Path
from typing import List

import structlog

from .completion import (
    ChatModelCompletionClient,
    CompletionClient,
    RelayCompletionClient,
    build_chat_model,
)
from .config import Settings
from .exceptions import CompletionError, PipelineCancelled
from .export import EXPORTERS
from .graph_model import MappingMode, PipelineResult, ReadingType, RoundCheckpoint
from .logging_config import configure_logging
from .phases.enrichment import ROUND_DESCRIPTIONS
from .phases.reading import continue_reading, generate_reading
from .runner import MappingPipeline

logger = structlog.get_logger(__name__)


def build_client(settings: Settings, backend: str) -> CompletionClient:
    if backend == "relay":
        if not settings.relay_url:
            raise RuntimeError("RHIZOME_RELAY_URL is not set in environment/.env")
        return RelayCompletionClient(settings.relay_url, timeout=settings.relay_timeout)
    return ChatModelCompletionClient(build_chat_model(settings))


def _print_checkpoint(checkpoint: RoundCheckpoint) -> None:
    description = ROUND_DESCRIPTIONS.get(checkpoint.round_index, "Connections forming...")
    print(
        f"Cycle {checkpoint.round_index}: {description} "
        f"nodes={checkpoint.node_count} edges={checkpoint.edge_count}"
    )


async def run_reading(args: argparse.Namespace, settings: Settings, client: CompletionClient) -> PipelineResult:
    reading_type = ReadingType(args.reading_type)
    if args.narrative_path:
        narrative = Path(args.narrative_path).read_text(encoding="utf-8")
    else:
        narrative = await generate_reading(client, reading_type, args.question)
    if args.followup:
        narrative = await continue_reading(client, narrative, args.followup)

    if args.skip_mapping:
        return MappingPipeline.without_mapping(narrative, args.question, reading_type=reading_type)

    pipeline = MappingPipeline(
        client,
        round_delay=settings.round_delay if args.delay is None else args.delay,
        on_checkpoint=_print_checkpoint,
    )
    return await pipeline.run(
        narrative,
        args.question,
        mode=MappingMode(args.mode),
        round_count=settings.round_count if args.rounds is None else args.rounds,
        reading_type=reading_type,
    )


async def _run(args: argparse.Namespace, settings: Settings, client: CompletionClient) -> PipelineResult:
    try:
        return await run_reading(args, settings, client)
    finally:
        if isinstance(client, RelayCompletionClient):
            await client.aclose()


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a reading, map it as a graph and save the result.")
    parser.add_argument("--question", default="", help="Question or situation for the reading.")
    parser.add_argument(
        "--reading-type",
        choices=[item.value for item in ReadingType],
        default=ReadingType.SPECIFIC.value,
    )
    parser.add_argument(
        "--narrative-path",
        default="",
        help="Use an existing reading from this file instead of generating one.",
    )
    parser.add_argument("--followup", default="", help="Optional follow-up appended to the reading.")
    parser.add_argument(
        "--mode",
        choices=[item.value for item in MappingMode],
        default=MappingMode.CONTROL.value,
    )
    parser.add_argument("--rounds", type=int, default=None, help="Enrichment rounds (default from settings).")
    parser.add_argument("--delay", type=float, default=None, help="Pause between rounds in seconds.")
    parser.add_argument("--backend", choices=["openai", "relay"], default="openai")
    parser.add_argument("--skip-mapping", action="store_true", help="Only produce the reading.")
    parser.add_argument("--format", choices=sorted(EXPORTERS), default="json")
    parser.add_argument(
        "--output-path",
        default="03_data/readings/reading.json",
        help="Where to save the exported reading.",
    )
    args = parser.parse_args(argv)
    if not args.narrative_path and not args.question.strip():
        parser.error("either --question or --narrative-path is required")
    if args.rounds is not None and args.rounds < 0:
        parser.error("--rounds must not be negative")
    return args


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    try:
        client = build_client(settings, args.backend)
    except RuntimeError as error:
        logger.error("completion backend unavailable", backend=args.backend, error=str(error))
        print(f"Error: {error}")
        return 1

    try:
        result = asyncio.run(_run(args, settings, client))
    except (CompletionError, PipelineCancelled) as error:
        logger.error("reading failed", error=str(error))
        print(f"Error during rhizomatic mapping: {error}. Please try again.")
        return 1

    output_path = Path(args.output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(EXPORTERS[args.format](result), encoding="utf-8")
    print(f"Reading saved to: {output_path.resolve()}")
    print(
        "Counts:",
        f"nodes={len(result.graph.nodes)}",
        f"edges={len(result.graph.edges)}",
        f"cycles={len(result.checkpoints)}",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
