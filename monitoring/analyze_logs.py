import json
import os
import sys
from collections import Counter

LOG_FILE = os.environ.get("BOOKING_LOG_DIR", "../booking-service/logs") + "/user_actions.log"

ACTIONS = {
    "CREATE_BOOKING": "created",
    "CANCEL_BOOKING": "cancelled",
    "APPROVE_BOOKING": "approved",
    "REJECT_BOOKING": "rejected",
    "RECONCILE_SHOW": "reconciled",
}


def analyze_logs(path=LOG_FILE):
    metrics = Counter()
    if not os.path.exists(path):
        return metrics

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                metrics["malformed"] += 1
                continue

            action = entry.get("action")
            if action in ACTIONS:
                metrics[ACTIONS[action]] += 1
            if action == "CREATE_BOOKING":
                details = entry.get("details", {})
                metrics[details.get("status", "unknown")] += 1
                metrics["seats_booked"] += len(details.get("seats", []))

    return metrics


if __name__ == "__main__":
    metrics = analyze_logs(sys.argv[1] if len(sys.argv) > 1 else LOG_FILE)

    print("=== Monitoring metrics ===")
    print(f"Bookings created: {metrics['created']}")
    print(f"  confirmed at creation: {metrics['confirmed']}")
    print(f"  pending approval: {metrics['pending']}")
    print(f"Seats booked: {metrics['seats_booked']}")
    print(f"Bookings cancelled: {metrics['cancelled']}")
    print(f"Bookings approved: {metrics['approved']}")
    print(f"Bookings rejected: {metrics['rejected']}")
    print(f"Show counters reconciled: {metrics['reconciled']}")
