#!/usr/bin/env python3
"""
Infer crawler schema hints from a sample extract of the source table.

Prints a SCHEMA_HINTS value (JSON) for the deployment settings.

Usage:
  python scripts/infer_schema_hints.py data/samples/test_table.parquet \
    --columns id name age
"""
import argparse
import json
from dataclasses import asdict

from crawlerconf.hints import load_sample, schema_hints_from_frame


def parse_args():
    p = argparse.ArgumentParser()
    p.add_argument("sample", help="Parquet or CSV extract of the table")
    p.add_argument("--columns", nargs="*", help="Columns to emit, in order (default: all)")
    return p.parse_args()


def main():
    args = parse_args()
    df = load_sample(args.sample)
    print("Rows:", len(df), "Cols:", len(df.columns))
    print("\nDtypes:\n", df.dtypes)

    hints = schema_hints_from_frame(df, args.columns)
    print("\nSCHEMA_HINTS=" + json.dumps([asdict(h) for h in hints]))


if __name__ == "__main__":
    main()
