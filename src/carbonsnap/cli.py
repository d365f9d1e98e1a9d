from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Dict

import pandas as pd

from .config import LOG_LEVEL_ENV, Paths
from .engine import assess_receipt_image, estimate_dataframe, estimate_item
from .factors import load_emission_factors
from .filters import preprocess_for_ocr
from .image_io import load_pixels, save_pixels
from .receipt_cleaning import extract_line_items

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _factors(args: argparse.Namespace):
    path = Path(args.factors) if args.factors else Paths().factors_csv
    return load_emission_factors(path)


def _cmd_item(args: argparse.Namespace) -> None:
    result = estimate_item(
        args.text,
        quantity=args.quantity,
        merchant=args.merchant,
        location=args.location,
        purchase_date=args.date,
        factors=_factors(args),
    )
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


def _cmd_basket(args: argparse.Namespace) -> None:
    if args.ocr_text:
        text = Path(args.ocr_text).read_text(encoding="utf-8")
        df = pd.DataFrame(extract_line_items(text), columns=["text", "quantity", "price"])
    elif args.csv:
        df = pd.read_csv(args.csv)
    else:
        raise SystemExit("basket: pass --csv or --ocr-text")

    result = estimate_dataframe(
        df=df,
        merchant=args.merchant,
        location=args.location,
        purchase_date=args.date,
        factors=_factors(args),
        drop_junk=not args.keep_junk,
    )

    items = result["items"]
    if args.out_items:
        out_items = Path(args.out_items)
        out_items.parent.mkdir(parents=True, exist_ok=True)
        items.to_csv(out_items, index=False)
        print(f"Wrote: {out_items}")

    basket = result["basket"].to_dict()
    # Print compact JSON summary
    summary: Dict[str, Any] = {
        "total_kg": basket["total_kg"],
        "equivalents": basket["equivalents"],
        "summary": basket["summary"],
        "by_category": basket["by_category"],
        "num_lines_scored": result["num_lines_scored"],
    }
    print(json.dumps(summary, indent=2, ensure_ascii=False))


def _cmd_assess_image(args: argparse.Namespace) -> None:
    buf = load_pixels(Path(args.image))
    height, width = buf.shape[:2]

    if args.save_enhanced:
        out_path = Path(args.save_enhanced)
        save_pixels(preprocess_for_ocr(buf), out_path)
        print(f"Wrote: {out_path}")

    result = assess_receipt_image(buf, width, height, enhance=not args.no_enhance)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


def _add_context_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--merchant", default=None, help="Store name, e.g. 'Downtown Farmers Market'")
    p.add_argument("--location", default=None, help="Purchase location, e.g. 'Toronto, Canada'")
    p.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Purchase date YYYY-MM-DD (enables seasonal produce detection)",
    )
    p.add_argument("--factors", default=None, help="Path to emission_factors.csv")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="carbonsnap", description="CarbonSnap CLI")
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_item = sub.add_parser("item", help="Estimate emissions for a single product line")
    p_item.add_argument("text", help="Product text, e.g. 'Organic Ground Beef 2 lbs'")
    p_item.add_argument("--quantity", type=float, default=1.0, help="Number of units purchased")
    _add_context_args(p_item)
    p_item.set_defaults(func=_cmd_item)

    p_basket = sub.add_parser("basket", help="Estimate a whole receipt from a CSV or OCR text")
    p_basket.add_argument("--csv", default=None, help="CSV with a text column (quantity, price optional)")
    p_basket.add_argument("--ocr-text", default=None, help="Plain-text OCR output of a receipt")
    p_basket.add_argument("--keep-junk", action="store_true", help="Do not drop receipt metadata lines")
    p_basket.add_argument("--out-items", default=None, help="Optional path to write scored line items as CSV")
    _add_context_args(p_basket)
    p_basket.set_defaults(func=_cmd_basket)

    p_img = sub.add_parser("assess-image", help="Check whether a photo is usable as a receipt scan")
    p_img.add_argument("image", help="Path to an image file")
    p_img.add_argument("--no-enhance", action="store_true", help="Score the raw image without preprocessing")
    p_img.add_argument("--save-enhanced", default=None, help="Write the preprocessed image (PNG) here")
    p_img.set_defaults(func=_cmd_assess_image)

    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)
