#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from pathlib import Path

from openpyxl import Workbook

HEADER = ["FirstName", "Phone", "Notes"]


def _rows(count: int) -> list[list[str]]:
    return [[f"Contact {index + 1}", f"+1555{index:07d}", "call back" if index % 3 == 0 else ""] for index in range(count)]


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample contact sheet for upload")
    parser.add_argument("--output", required=True, help="output path (.csv or .xlsx)")
    parser.add_argument("--rows", type=int, default=25, help="number of contacts")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    if output.suffix.lower() == ".xlsx":
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Contacts"
        sheet.append(HEADER)
        for row in _rows(args.rows):
            sheet.append(row)
        workbook.save(output)
    else:
        with output.open("w", newline="", encoding="utf-8") as fp:
            writer = csv.writer(fp)
            writer.writerow(HEADER)
            writer.writerows(_rows(args.rows))

    print(f"Sample contact sheet written to {output}")


if __name__ == "__main__":
    main()
