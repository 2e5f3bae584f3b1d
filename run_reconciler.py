"""Launcher: reconcile the issue tree for one webhook payload.

Usage:
  python run_reconciler.py event.json [--config reconciler.yaml]
  cat event.json | python run_reconciler.py -

Jira credentials come from the settings file or the JIRA_SERVER,
JIRA_EMAIL and JIRA_API_TOKEN environment variables.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from jira_sync.app import build_service, handle_payload
from jira_sync.core.config import DEFAULT_SETTINGS_FILE, load_settings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("event", help="path to the webhook JSON payload, or - for stdin")
    parser.add_argument("--config", default=DEFAULT_SETTINGS_FILE, help="settings YAML file")
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.event == "-":
        payload = json.load(sys.stdin)
    else:
        with open(args.event, encoding="utf-8") as fh:
            payload = json.load(fh)

    handle_payload(payload, build_service(settings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
