#!/usr/bin/env python3
"""
Replay Invoice Event Script

Runs a saved Stripe `invoice.paid` event through the sale pipeline against the
configured backends, without signature verification. Useful after an outage,
once Stripe has given up retrying the deliveries.

Invoices already claimed in the dedup store are reported and skipped, exactly
as a live delivery would be.

Usage:
    python replay_invoice_event.py --event evt_invoice_paid.json
    python replay_invoice_event.py --event events/ --verbose
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Mapping

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import build_invoice_paid_handler
from config.logging_config import configure_logging
from services.background import ThreadPoolTaskScheduler
from services.invoice_paid_service import INVOICE_PAID_EVENT


def load_events(path: Path) -> List[Mapping[str, Any]]:
    """Load one event file, or every *.json file of a directory (sorted by name)."""

    files = sorted(path.glob("*.json")) if path.is_dir() else [path]
    return [json.loads(file.read_text(encoding="utf-8")) for file in files]


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Replay saved Stripe invoice.paid events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay a single event
  python replay_invoice_event.py --event evt_123.json

  # Replay every event in a directory
  python replay_invoice_event.py --event exported_events/
        """
    )

    parser.add_argument(
        "--event",
        "-e",
        required=True,
        type=Path,
        help="Path to an event JSON file or a directory of them"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()
    configure_logging("DEBUG" if args.verbose else "INFO")

    scheduler = ThreadPoolTaskScheduler()
    try:
        handler = build_invoice_paid_handler(scheduler)
        events = load_events(args.event)

        for event in events:
            if event.get("type") != INVOICE_PAID_EVENT:
                print(f"- {event.get('id')}: not an {INVOICE_PAID_EVENT} event, skipped")
                continue
            print(f"- {event.get('id')}: {handler.handle(event)}")

        return 0

    except KeyboardInterrupt:
        print("\n\nReplay interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1

    finally:
        # Let notifications and webhooks finish before exiting
        scheduler.shutdown(wait=True)


if __name__ == "__main__":
    sys.exit(main())
