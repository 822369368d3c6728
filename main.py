#!/usr/bin/env python3
"""
Livebet calculator — command-line front end.

Collects a match snapshot (JSON file and/or flags), kicks off the
calibration load in the background, scores the snapshot, prints the
report and appends it to the prediction history.

Usage:
    python main.py --snapshot match.json
    python main.py --home-team Arsenal --away-team Chelsea \
                   --minute 63 --home-goals 1 --home-sot 5 --away-sot 2
    python main.py --snapshot match.json --json --export
    python main.py --history
    python main.py --history-csv history.csv
    python main.py --clear-history
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from config import (
    CALIBRATION_SOURCE, CALIBRATION_TIMEOUT_S,
    HISTORY_FILE, HISTORY_CAP, EXPORT_DIR,
)
from logging_config import setup_logging
from football.calibration import CalibrationProvider
from football.history import PredictionHistory, export_prediction
from football.model import score
from football.state import MatchSnapshot, Prediction

log = logging.getLogger("main")


# flag → snapshot field
_STAT_FLAGS = {
    "home_possession": "--home-possession",
    "away_possession": "--away-possession",
    "home_shots_on_target": "--home-sot",
    "away_shots_on_target": "--away-sot",
    "home_shots_off_target": "--home-soff",
    "away_shots_off_target": "--away-soff",
    "home_corners": "--home-corners",
    "away_corners": "--away-corners",
    "home_yellow_cards": "--home-yellows",
    "away_yellow_cards": "--away-yellows",
    "home_red_cards": "--home-reds",
    "away_red_cards": "--away-reds",
    "home_goals": "--home-goals",
    "away_goals": "--away-goals",
    "minute": "--minute",
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="In-play football market calculator")

    src = p.add_argument_group("snapshot")
    src.add_argument("--snapshot", type=Path, help="JSON file with match statistics")
    src.add_argument("--home-team", dest="home_team")
    src.add_argument("--away-team", dest="away_team")
    for field_name, flag in _STAT_FLAGS.items():
        src.add_argument(flag, dest=field_name, type=int)
    src.add_argument("--venue", choices=["home", "away"])
    src.add_argument("--referee-intensity", dest="referee_intensity", type=float)
    src.add_argument("--diagnostics", dest="show_diagnostics",
                     action="store_true", default=None)

    cal = p.add_argument_group("calibration")
    cal.add_argument("--calibration", default=CALIBRATION_SOURCE,
                     help="calibration file or URL (empty to disable); the load runs in "
                          "the background, so a single run only sees it with "
                          "--wait-calibration")
    cal.add_argument("--wait-calibration", action="store_true",
                     help="wait for the calibration load before scoring")

    out = p.add_argument_group("output")
    out.add_argument("--json", action="store_true", help="print the full result as JSON")
    out.add_argument("--export", action="store_true", help=f"write result JSON to {EXPORT_DIR}/")
    out.add_argument("--no-history", action="store_true", help="do not record this prediction")

    hist = p.add_argument_group("history")
    hist.add_argument("--history", action="store_true", help="list stored predictions")
    hist.add_argument("--history-csv", type=Path, help="write stored predictions to CSV")
    hist.add_argument("--clear-history", action="store_true")
    return p


def read_snapshot(args: argparse.Namespace) -> MatchSnapshot:
    """Merge the snapshot file (if any) with flags; flags win."""
    data: dict = {}
    if args.snapshot is not None:
        loaded = json.loads(args.snapshot.read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            raise ValueError(f"{args.snapshot} must contain a JSON object")
        data.update(loaded)

    overrides = ["home_team", "away_team", "venue", "referee_intensity",
                 "show_diagnostics", *_STAT_FLAGS]
    for name in overrides:
        value = getattr(args, name, None)
        if value is not None:
            data[name] = value
    return MatchSnapshot.from_dict(data)


# ═══════════════════════════════════════════════════════════════════════
#  Report
# ═══════════════════════════════════════════════════════════════════════

def print_header(text, width=70):
    print('\n' + '═' * width)
    print(f'  {text}')
    print('═' * width)


def print_section(text):
    print(f'\n── {text} ' + '─' * max(1, 50 - len(text)))


def _pct(p: float) -> str:
    return f"{p * 100:5.1f}%"


def print_report(pred: Prediction) -> None:
    snap = pred.snapshot
    home = snap.home_team or "Home"
    away = snap.away_team or "Away"
    cal = pred.calibrated
    lam = pred.intensity

    print_header(f"{home} {snap.home_goals}-{snap.away_goals} {away}  ({snap.minute}')")
    print(f"  λ home={lam.home:.3f}  λ away={lam.away:.3f}  "
          f"max_k={pred.distribution.max_k}  calibration={pred.calibration_status}")

    print_section("Match result")
    print(f"  {home:<24} {_pct(cal['1_home'])}")
    print(f"  {'Draw':<24} {_pct(cal['1_draw'])}")
    print(f"  {away:<24} {_pct(cal['1_away'])}")

    print_section("Goals still to come")
    print(f"  Over/Under 2.5   {_pct(cal['ou25_over'])} / {_pct(cal['ou25_under'])}")
    print(f"  Over/Under 3.5   {_pct(cal['ou35_over'])} / {_pct(cal['ou35_under'])}")
    print(f"  BTTS yes/no      {_pct(cal['btts_yes'])} / {_pct(cal['btts_no'])}")

    print_section("Corners & cards")
    print(f"  Corners o/u 8.5  {_pct(cal['corners85_over'])} / {_pct(cal['corners85_under'])}"
          f"   (expected {pred.expected_corners:.2f})")
    print(f"  Cards o/u 4.5    {_pct(cal['cards45_over'])} / {_pct(cal['cards45_under'])}"
          f"   (expected {pred.expected_cards:.2f})")

    print_section("Double chance / draw no bet")
    print(f"  1X {_pct(cal['dc_1x'])}   12 {_pct(cal['dc_12'])}   X2 {_pct(cal['dc_x2'])}")
    print(f"  DNB {home} {_pct(cal['dnb_home'])}   DNB {away} {_pct(cal['dnb_away'])}")

    print_section(f"{pred.goalscorer_label.capitalize()} goal")
    print(f"  {home} {_pct(cal['goal_home'])}   {away} {_pct(cal['goal_away'])}   "
          f"none {_pct(cal['goal_none'])}")

    print_section("Most likely final scores")
    for line in pred.correct_scores:
        print(f"  {line.label:<6} {_pct(line.probability)}")

    print_section("Betting tips")
    if pred.tips:
        for tip in pred.tips:
            print(f"  • {tip.label}   [lower bound {_pct(tip.lower_bound)}]")
    else:
        print("  No market clears its confidence threshold.")


def print_history(history: PredictionHistory) -> None:
    frame = history.to_frame()
    if frame.empty:
        print("No stored predictions.")
        return
    print(frame.to_string(index=False))


# ═══════════════════════════════════════════════════════════════════════
#  Entry
# ═══════════════════════════════════════════════════════════════════════

async def run(args: argparse.Namespace) -> int:
    history = PredictionHistory(HISTORY_FILE, HISTORY_CAP)

    if args.clear_history:
        history.clear()
        return 0
    if args.history or args.history_csv:
        if args.history_csv:
            history.to_frame().to_csv(args.history_csv, index=False)
            log.info("history written to %s", args.history_csv)
        if args.history:
            print_history(history)
        return 0

    try:
        snap = read_snapshot(args)
    except (OSError, ValueError) as e:
        log.error("cannot read snapshot: %s", e)
        return 2

    provider = CalibrationProvider()
    provider.start(args.calibration, CALIBRATION_TIMEOUT_S)
    if args.wait_calibration:
        await provider.wait()

    prediction = score(snap, provider.current)
    result = prediction.as_dict()

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print_report(prediction)

    try:
        if args.export:
            export_prediction(result, EXPORT_DIR)
        if not args.no_history:
            history.append(result)
    except OSError as e:
        log.error("failed to write output: %s", e)
        return 1
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
