from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import ChallengeDirection
from .errors import RevscoreError
from .pipeline import (
    analysis_to_dict,
    classify_file,
    compare_files,
    routed_to_dict,
    score_files,
    score_files_routed,
    tune_directory,
)
from .presets import preset_by_name, preset_names
from .report import format_report, render_parameter_snippet, summarize_result

logger = logging.getLogger(__name__)


def _print_progress(current: int, total: int, percent: float) -> None:
    # called once per finished chunk of the grid
    print(f"\r{current}/{total} ({percent:.0f}%)", end="", file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="revscore", description="Reverse-singing scoring and vocal mode tools")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    p.add_argument("--sample-rate", type=int, default=44100, help="resample inputs to this rate")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("score", help="score an attempt against a reference clip")
    s.add_argument("attempt", type=str)
    s.add_argument("reference", type=str)
    s.add_argument("--preset", default="normal", choices=preset_names())
    s.add_argument("--direction", default="forward", choices=[d.value for d in ChallengeDirection])
    s.add_argument("--auto-mode", action="store_true", help="classify the reference and use its speech or singing presets")

    c = sub.add_parser("classify", help="label a clip as speech or singing")
    c.add_argument("path", type=str)

    m = sub.add_parser("compare", help="spectral similarity of two clips (0-100)")
    m.add_argument("a", type=str)
    m.add_argument("b", type=str)

    t = sub.add_parser("tune", help="grid-search classifier parameters on labelled clips")
    t.add_argument("directory", type=str, help="folder of speech_*/singing_* clips")
    t.add_argument("--workers", type=int, default=None)
    t.add_argument("--report", type=str, default=None, help="write the text report here")
    t.add_argument("--snippet", action="store_true", help="print a TuningParameters snippet")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        _run(args)
    except RevscoreError as e:
        logger.error("%s", e)
        return 1
    return 0


def _run(args: argparse.Namespace) -> None:
    if args.command == "score":
        bundle = preset_by_name(args.preset)
        direction = ChallengeDirection(args.direction)
        if args.auto_mode:
            routed = score_files_routed(
                args.attempt,
                args.reference,
                level=bundle.difficulty,
                direction=direction,
                sample_rate=args.sample_rate,
            )
            print(json.dumps(routed_to_dict(routed), indent=2))
        else:
            result = score_files(
                args.attempt,
                args.reference,
                bundle=bundle,
                direction=direction,
                sample_rate=args.sample_rate,
            )
            print(json.dumps(summarize_result(result), indent=2))

    elif args.command == "classify":
        analysis = classify_file(args.path, sample_rate=args.sample_rate)
        print(json.dumps(analysis_to_dict(analysis), indent=2))

    elif args.command == "compare":
        print(json.dumps({"similarity": compare_files(args.a, args.b, sample_rate=args.sample_rate)}, indent=2))

    elif args.command == "tune":
        result = tune_directory(
            args.directory,
            max_workers=args.workers,
            progress=_print_progress,
            sample_rate=args.sample_rate,
        )
        print(file=sys.stderr)
        if args.report:
            with open(args.report, "w", encoding="utf-8") as f:
                f.write(format_report(result))
            logger.info("Report written to %s", args.report)
        print(json.dumps(summarize_result(result), indent=2))
        if args.snippet:
            print(render_parameter_snippet(result))


if __name__ == "__main__":
    sys.exit(main())
