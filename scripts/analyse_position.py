#!/usr/bin/env python3
"""Search a position read from a board file and print the chosen play as JSON."""

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

import yaml

from hnefatafl.core import Board, MoveCounter, Role, Status
from hnefatafl.search import (
    EvaluationCache,
    GameTreeNode,
    HeuristicPolicy,
    SearchConfig,
    choose_child,
    heuristic,
    scaled_to_float,
)

logger = logging.getLogger("analyse_position")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--board", type=str, required=True, help="File with 11 rows of .OXK")
    parser.add_argument("--config", type=str, default="configs/search.yaml")
    parser.add_argument("--turn", type=str, default="attacker", choices=["attacker", "defender"])
    parser.add_argument("--moves", type=int, default=0, help="Plies already played")
    parser.add_argument("--depth", type=int)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = {}
    if args.config:
        cfg_path = Path(args.config)
        if cfg_path.exists():
            cfg = yaml.safe_load(cfg_path.read_text()) or {}
        else:
            logger.warning("config %s not found, using defaults", cfg_path)
    config = SearchConfig.from_dict(cfg)
    if args.depth is not None:
        config.depth = args.depth

    board = Board.from_text(Path(args.board).read_text())
    node = GameTreeNode(
        status=Status.ONGOING,
        turn=Role.parse(args.turn),
        board=board,
        positions=MoveCounter(args.moves),
    )
    cache = EvaluationCache() if config.use_cache else None
    policy = HeuristicPolicy(cache)

    summary = {
        "turn": str(node.turn),
        "static_score": scaled_to_float(heuristic(node, cache)),
        "depth": config.depth,
    }
    choice = choose_child(node, policy, max(config.depth, 1), use_threats=config.use_threats)
    if choice is None:
        summary["play"] = None
        logger.info("no legal play for %s", node.turn)
    else:
        record = choice.child.last_play
        summary.update(
            {
                "play": str(record.play) if record else None,
                "captures": [str(square) for square in record.captures] if record else [],
                "status": choice.child.status.value,
                "score": choice.score,
                "score_float": scaled_to_float(choice.score),
                "stats": asdict(choice.stats),
            }
        )
    policy.log_cache()
    if cache is not None:
        summary["cache"] = {"entries": len(cache), "hits": cache.hits, "misses": cache.misses}
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
