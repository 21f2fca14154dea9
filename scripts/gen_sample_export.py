#!/usr/bin/env python3
"""Sample form export generator.

Writes a workbook shaped like the order form export:
- Row 1: the fixed Korean question texts (orderdesk.excel.mapping.HEADER_MAP)
- Row 2+: one response per row

A share of the rows carries hyperlinked attachments (product image, business
registration file) so that the reference resolution path gets exercised.
Useful for trying ``orderdesk analyze`` / ``orderdesk upload`` locally and for
checking mapping speed on large exports.
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import numpy as np
from openpyxl import Workbook

from orderdesk.excel.mapping import FIRST_TIME_BUYER, HEADER_MAP, PRIVACY_AGREED

COMPANIES = ["아크릴상회", "투명공방", "빛나는간판", "굿즈메이커", "카페 모음", "Acryl Studio"]
PRODUCTS = ["아크릴 명함꽂이", "아크릴 키링", "메뉴판 거치대", "포토 스탠드", "네임택"]
MATERIALS = ["투명 아크릴", "불투명 아크릴", "미러 아크릴"]
COLORS = ["투명", "화이트", "블랙", "골드 미러"]
THICKNESS = ["2mm", "3mm", "5mm", "8mm"]
REFERRALS = ["인스타그램", "네이버 검색", "지인 소개", "블로그"]
AMPM = {True: "오후", False: "오전"}


def _korean_timestamp(ts: datetime) -> str:
    """Render like the form export: ``2024. 5. 3 오후 2:22:11``."""
    hour = ts.hour % 12 or 12
    return f"{ts.year}. {ts.month}. {ts.day} {AMPM[ts.hour >= 12]} {hour}:{ts.minute:02d}:{ts.second:02d}"


def generate_responses(rows: int, seed: int = 42, link_ratio: float = 0.3) -> list[dict[str, Any]]:
    """Generate ``rows`` responses keyed by record field name.

    Participant numbers restart at 1 for every response day, like the form
    tool numbers them.
    """
    rng = np.random.default_rng(seed)
    start = datetime(2024, 5, 1, 9, 0, 0)
    offsets = np.sort(rng.integers(0, 60 * 60 * 24 * 30, rows))

    responses: list[dict[str, Any]] = []
    per_day: dict[str, int] = {}
    for i, offset in enumerate(offsets):
        ts = start + timedelta(seconds=int(offset))
        day = ts.date().isoformat()
        per_day[day] = per_day.get(day, 0) + 1
        linked = bool(rng.random() < link_ratio)
        responses.append({
            "response_date": _korean_timestamp(ts),
            "participant_number": per_day[day],
            "name_or_company": str(rng.choice(COMPANIES)),
            "contact": f"010-{rng.integers(1000, 9999)}-{rng.integers(1000, 9999)}",
            "email": f"buyer{i + 1}@example.com",
            "business_registration_file": "사업자등록증" if linked else None,
            "privacy_agreement": PRIVACY_AGREED,
            "first_time_buyer": FIRST_TIME_BUYER if rng.random() < 0.6 else "구매한 적 있습니다.",
            "product_description": str(rng.choice(PRODUCTS)),
            "product_size": f"{rng.integers(30, 300)}x{rng.integers(30, 300)}",
            "thickness": str(rng.choice(THICKNESS)),
            "material": str(rng.choice(MATERIALS)),
            "color": str(rng.choice(COLORS)),
            "quantity": int(rng.integers(1, 500)),
            "desired_delivery": f"{ts.month}월 말",
            "product_image": "첨부파일" if linked else None,
            "product_drawing": None,
            "inquiry": "각인 가능한가요?" if rng.random() < 0.2 else None,
            "referral_source": str(rng.choice(REFERRALS)),
            "_linked": linked,
        })
    return responses


def create_export_file(output_path: Path, rows: int, seed: int = 42, link_ratio: float = 0.3) -> int:
    """Write the export workbook; returns the number of hyperlinked cells."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fields = list(HEADER_MAP.values())
    image_col = fields.index("product_image") + 1
    biz_col = fields.index("business_registration_file") + 1

    wb = Workbook()
    ws = wb.active
    ws.title = "응답"
    ws.append(list(HEADER_MAP.keys()))
    links = 0
    for n, resp in enumerate(generate_responses(rows, seed, link_ratio), start=2):
        ws.append([resp.get(f) for f in fields])
        if resp["_linked"]:
            ws.cell(row=n, column=image_col).hyperlink = f"https://files.example.com/{n}/image.png"
            ws.cell(row=n, column=biz_col).hyperlink = f"https://files.example.com/{n}/biz.pdf"
            links += 2
    wb.save(output_path)
    return links


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic order form export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/sample.xlsx
  %(prog)s data/large.xlsx --rows 20000 --link-ratio 0.5 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=200, help="Number of responses (default: 200)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument(
        "--link-ratio",
        type=float,
        default=0.3,
        help="Share of rows with hyperlinked attachments (default: 0.3)",
    )
    args = parser.parse_args(argv)

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.link_ratio <= 1.0:
        print("Error: --link-ratio must be between 0 and 1", file=sys.stderr)
        return 1

    links = create_export_file(args.output, args.rows, args.seed, args.link_ratio)
    print(f"Created export: {args.output}")
    print(f"  Responses: {args.rows:,}")
    print(f"  Hyperlinked cells: {links:,}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
