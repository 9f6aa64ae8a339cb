#!/usr/bin/env python3
"""
Run the crawler sync from a shell, the same way the deploy-time custom resource does.

Exits non-zero on any failure so it can gate a provisioning pipeline.

Usage:
  SECRET_ARN=arn:aws:secretsmanager:... CRAWLER_ROLE_ARN=arn:aws:iam::... \
    python scripts/sync_crawler.py --crawler-name pocGlueCrawler
"""
import argparse
import sys

from crawlerconf.cli import run


def parse_args():
    p = argparse.ArgumentParser()
    p.add_argument("--secret-arn", help="Override SECRET_ARN")
    p.add_argument("--crawler-name", help="Override GLUE_CRAWLER_NAME")
    p.add_argument("--log-level", default=None)
    return p.parse_args()


if __name__ == "__main__":
    args = parse_args()
    sys.exit(run(secret_arn=args.secret_arn, crawler_name=args.crawler_name, log_level=args.log_level))
