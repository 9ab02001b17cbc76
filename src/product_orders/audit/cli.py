"""CLI query interface for the lifecycle audit trail.

Queries audit entries by order, influencer, date range, event type, and
a shorthand ``--last`` duration.  Output formats: table (default) or JSON.

Usage::

    python -m product_orders.audit.cli --order 12 --last 7d
    python -m product_orders.audit.cli --influencer 42 --format json
"""

from __future__ import annotations

import argparse
import json
from datetime import UTC, datetime, timedelta
from typing import Any

from product_orders.audit.models import EventType
from product_orders.audit.store import init_audit_table, query_audit_trail
from product_orders.store.schema import open_database


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for audit trail queries."""
    parser = argparse.ArgumentParser(description="Query product order audit trail")

    parser.add_argument("--order", type=int, help="Filter by product order ID")
    parser.add_argument("--influencer", type=int, help="Filter by influencer ID")
    parser.add_argument("--from-date", type=str, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--to-date", type=str, help="End date (YYYY-MM-DD)")
    parser.add_argument(
        "--event-type",
        type=str,
        choices=[e.value for e in EventType],
        help="Filter by event type",
    )
    parser.add_argument(
        "--last",
        type=str,
        help='Shorthand duration (e.g., "7d", "24h", "30d")',
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum results (default: 50)",
    )
    parser.add_argument(
        "--db",
        type=str,
        default="data/product_orders.db",
        help="Path to the database (default: data/product_orders.db)",
    )

    return parser


def parse_last_duration(last: str, *, now: datetime | None = None) -> str:
    """Convert a shorthand duration (``7d``, ``24h``) to an ISO 8601 string.

    Raises:
        ValueError: If the format is not recognized.
    """
    if not last or len(last) < 2:
        msg = f"Unrecognized duration format: {last!r}"
        raise ValueError(msg)

    unit = last[-1]
    try:
        value = int(last[:-1])
    except ValueError:
        msg = f"Unrecognized duration format: {last!r}"
        raise ValueError(msg) from None

    now = now or datetime.now(tz=UTC)

    if unit == "d":
        result = now - timedelta(days=value)
    elif unit == "h":
        result = now - timedelta(hours=value)
    else:
        msg = f"Unrecognized duration format: {last!r}. Use 'd' for days or 'h' for hours."
        raise ValueError(msg)

    return result.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_table(results: list[dict[str, Any]]) -> str:
    """Format audit results as a fixed-width table.

    Columns: Timestamp, Event type, Order, Influencer, Event, From, To.
    """
    if not results:
        return "No results found."

    headers = ["Timestamp", "Event type", "Order", "Influencer", "Event", "From", "To"]
    widths = [20, 20, 7, 10, 14, 16, 16]

    def truncate(value: object, width: int) -> str:
        s = "" if value is None else str(value)
        if len(s) > width:
            return s[: width - 3] + "..."
        return s

    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))
    lines = [header_line, "-" * len(header_line)]

    for row in results:
        cells = [
            truncate(row.get("timestamp"), widths[0]),
            truncate(row.get("event_type"), widths[1]),
            truncate(row.get("product_order_id"), widths[2]),
            truncate(row.get("influencer_id"), widths[3]),
            truncate(row.get("event"), widths[4]),
            truncate(row.get("from_status"), widths[5]),
            truncate(row.get("to_status"), widths[6]),
        ]
        lines.append("  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)))

    return "\n".join(lines)


def format_json(results: list[dict[str, Any]]) -> str:
    return json.dumps(results, indent=2)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, query the audit trail, and print results."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from_date = args.from_date
    if args.last:
        from_date = parse_last_duration(args.last)

    conn = open_database(args.db)
    init_audit_table(conn)

    try:
        results = query_audit_trail(
            conn,
            product_order_id=args.order,
            influencer_id=args.influencer,
            from_date=from_date,
            to_date=args.to_date,
            event_type=args.event_type,
            limit=args.limit,
        )
        output = format_json(results) if args.output_format == "json" else format_table(results)
        print(output)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
