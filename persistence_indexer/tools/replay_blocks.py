"""
Replay decoded blocks from a JSON-lines file through the mapping dispatcher.

Each line is one decoded block:
    {"header": {"height": 1, "time": "2024-01-01T05:10:00Z", "chainId": "core-1"},
     "txs": [{"hash": "...", "code": 0, "fee": [...], "messages": [...], "events": [...]}]}

Blocks below START_BLOCK (or --start-block) are skipped. Store URL, chain id
and failed-tx handling come from settings (.env / environment).

Usage:
    python -m persistence_indexer.tools.replay_blocks blocks.jsonl
    python -m persistence_indexer.tools.replay_blocks blocks.jsonl --db-url sqlite:///replay.db
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Iterator

from persistence_indexer.config import get_settings
from persistence_indexer.cosmos.models import CosmosBlock
from persistence_indexer.database import get_store
from persistence_indexer.indexer_logging import get_logger
from persistence_indexer.mappings import MappingDispatcher

logger = get_logger(__name__)


def iter_blocks(path: Path, default_chain_id: str = "") -> Iterator[CosmosBlock]:
    with path.open(encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield CosmosBlock.from_dict(json.loads(line), default_chain_id)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: invalid block record: {e}") from e


def run(path: Path, *, db_url: str | None = None, start_block: int | None = None) -> dict[str, int]:
    """Replay all blocks at or above start_block; return totals."""
    settings = get_settings()
    start = start_block if start_block is not None else settings.start_block
    store = get_store(db_url or settings.database_url)
    dispatcher = MappingDispatcher(store, include_failed_tx=settings.include_failed_tx)

    totals = {"blocks": 0, "processed": 0, "skipped": 0, "aborted": 0, "skipped_events": 0}
    last_height = 0
    for block in iter_blocks(path, settings.chain_id):
        if block.header.height < start:
            continue
        if block.header.height <= last_height:
            logger.warning(
                "replay_block_out_of_order",
                block_height=block.header.height,
                last_height=last_height,
            )
        last_height = max(last_height, block.header.height)
        result = dispatcher.process_block(block)
        totals["blocks"] += 1
        for key in ("processed", "skipped", "aborted", "skipped_events"):
            totals[key] += getattr(result, key)
    logger.info("replay_finished", path=str(path), **totals)
    return totals


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Replay decoded Persistence blocks (JSON lines) into the entity store.",
    )
    parser.add_argument("path", type=Path, help="JSON-lines file, one decoded block per line")
    parser.add_argument("--db-url", default=None, help="SQLAlchemy URL (default: from settings)")
    parser.add_argument("--start-block", type=int, default=None, help="First height to index (default: START_BLOCK)")
    args = parser.parse_args(argv)
    try:
        totals = run(args.path, db_url=args.db_url, start_block=args.start_block)
        print("REPLAYED:", json.dumps(totals))
        return 0
    except Exception as e:
        logger.exception("replay_failed", error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
