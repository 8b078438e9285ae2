#!/usr/bin/env python3
import argparse
import datetime as dt
import sys

import yaml
from tqdm import tqdm

from histbin.bin_index import InvalidBinIndexError
from histbin.config import axis_to_dict, hist_from_config, load_config


def timestamp():
    return dt.datetime.now().strftime("%H:%M:%S")


def _fmt(values):
    return "(" + ", ".join(f"{v:.6g}" for v in values) + ")"


def format_bin(info):
    ids = "[" + " ".join(f"{b:>3}" for b in info.local_ids) + " ]"
    return (
        f"{info.index:>8}  {ids}  from={_fmt(info.from_)}  "
        f"center={_fmt(info.center)}  to={_fmt(info.to)}"
    )


def verify_layout(hist, show_progressbar=False):
    """
    Walk all bins in enumeration order and check the global numbering.

    Regular bins must be numbered 1, 2, ... and under/overflow bins -1, -2,
    ... in visitation order, the center of every bin must map back to it,
    and the boundaries looked up by global index must match the per-axis
    ones. Returns a list of failure messages.
    """
    failures = []
    last_regular = 0
    last_overflow = 0

    for info in tqdm(
        hist.iter_bins(),
        total=hist.get_n_bins(),
        desc="Verifying bins",
        colour="cyan",
        dynamic_ncols=True,
        disable=not show_progressbar,
    ):
        if all(b >= 1 for b in info.local_ids):
            last_regular += 1
            expected = last_regular
        else:
            last_overflow -= 1
            expected = last_overflow

        where = f"bin {list(info.local_ids)}"
        if info.index != expected:
            failures.append(f"{where}: numbered {info.index}, expected {expected}")

        found = hist.get_bin_index(info.center)
        if found != expected:
            failures.append(f"{where}: center maps to {found}, expected {expected}")

        if hist.get_bin_from(expected) != info.from_:
            failures.append(f"{where}: from {hist.get_bin_from(expected)} != {info.from_}")
        if hist.get_bin_center(expected) != info.center:
            failures.append(f"{where}: center {hist.get_bin_center(expected)} != {info.center}")
        if hist.get_bin_to(expected) != info.to:
            failures.append(f"{where}: to {hist.get_bin_to(expected)} != {info.to}")

    if last_regular != hist.get_n_regular_bins():
        failures.append(
            f"saw {last_regular} regular bins, expected {hist.get_n_regular_bins()}"
        )
    if -last_overflow != hist.get_n_overflow_bins():
        failures.append(
            f"saw {-last_overflow} overflow bins, expected {hist.get_n_overflow_bins()}"
        )
    return failures


def main(argv=None):
    ap = argparse.ArgumentParser(
        description="Show and check the global bin numbering of a histogram axis configuration."
    )
    ap.add_argument("config", help="YAML file with a top-level 'axes' list")
    ap.add_argument(
        "--find",
        nargs="+",
        type=float,
        metavar="X",
        help="Print the global bin index of one coordinate per axis",
    )
    ap.add_argument(
        "--index",
        type=int,
        default=None,
        help="Print local bins and boundaries of one global bin index",
    )
    ap.add_argument(
        "--verify",
        action="store_true",
        help="Walk all bins and check numbering and boundary round trips",
    )
    ap.add_argument(
        "--show-progressbar",
        action="store_true",
        help="Show tqdm progress bar while verifying",
    )
    ap.add_argument("-v", "--verbose", action="store_true")

    args = ap.parse_args(argv)

    try:
        hist = hist_from_config(load_config(args.config))
    except FileNotFoundError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"[ERROR] bad config {args.config}: {e}", file=sys.stderr)
        return 2

    if args.verbose:
        print(f"[INFO] {timestamp()} loaded {args.config}", file=sys.stderr)
        print(yaml.safe_dump({"axes": [axis_to_dict(ax) for ax in hist.axes]}), end="", file=sys.stderr)
        print(
            f"[INFO] bins: {hist.get_n_bins()} "
            f"(regular {hist.get_n_regular_bins()}, overflow {hist.get_n_overflow_bins()})",
            file=sys.stderr,
        )

    if args.find is not None:
        if len(args.find) != hist.ndim:
            print(
                f"[ERROR] --find needs {hist.ndim} coordinate(s), got {len(args.find)}",
                file=sys.stderr,
            )
            return 2
        try:
            print(hist.get_bin_index(args.find))
        except ValueError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 2
        return 0

    if args.index is not None:
        try:
            ids = hist.get_local_bins(args.index)
        except InvalidBinIndexError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 2
        print(f"local bins: {list(ids)}")
        print(f"from:   {_fmt(hist.get_bin_from(args.index))}")
        print(f"center: {_fmt(hist.get_bin_center(args.index))}")
        print(f"to:     {_fmt(hist.get_bin_to(args.index))}")
        return 0

    if args.verify:
        failures = verify_layout(hist, show_progressbar=args.show_progressbar)
        for msg in failures:
            print(f"[ERROR] {msg}", file=sys.stderr)
        if failures:
            print(f"[ERROR] {len(failures)} check(s) failed", file=sys.stderr)
            return 3
        print(f"[OK] {hist.get_n_bins()} bins verified")
        return 0

    for info in hist.iter_bins():
        print(format_bin(info))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
