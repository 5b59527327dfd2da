"""
Smoke check against a running analytics API.

Usage: python3 scripts/check_api.py [base_url]
"""
import sys

import requests

BASE_URL = "http://localhost:8000"
TIMEOUT = 30


def check(base_url: str = BASE_URL) -> bool:
    ok = True

    print("1. Health...")
    r = requests.get(f"{base_url}/health", timeout=TIMEOUT)
    r.raise_for_status()
    health = r.json()
    print(f"   status={health['status']} database={health['database']}")
    if health["status"] != "ok":
        return False

    print("2. Summary by mint pattern...")
    r = requests.post(
        f"{base_url}/analytics/groups/summary",
        json={"grouping": {"mintPattern": True}, "filters": {"min_max_sol": 1}},
        timeout=TIMEOUT,
    )
    r.raise_for_status()
    summary = r.json()
    print(f"   {summary['total_groups']} groups, {summary['total_tokens']} tokens, "
          f"{summary['overall_migration_rate']:.2f}% migrated")

    print("3. Threshold simulation...")
    r = requests.post(
        f"{base_url}/analytics/thresholds",
        json={"grouping": {"mintPattern": True, "unitPrice": True}, "limit": 5, "sample": 0},
        timeout=TIMEOUT,
    )
    r.raise_for_status()
    for group in r.json():
        t = group.get("thresholds")
        if t is None:
            continue
        outcomes = t["recommended"]["win_count"] + t["recommended"]["loss_count"]
        measured = sum(1 for token in group["tokens"] if "rise_sol" in token)
        if outcomes != measured:
            print(f"   MISMATCH {group['group_key']}: {outcomes} outcomes for {measured} tokens")
            ok = False
        print(f"   {group['group_key']}: sell at {t['recommended_sell_sol']:.4f} ({t['risk_level']})")

    print("4. Invalid input is rejected...")
    r = requests.post(
        f"{base_url}/analytics/groups",
        json={"grouping": {"mintPattern": True}, "filters": {"win_percent": 150}},
        timeout=TIMEOUT,
    )
    if r.status_code != 400:
        print(f"   expected 400, got {r.status_code}")
        ok = False

    print("PASS" if ok else "FAIL")
    return ok


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    sys.exit(0 if check(url) else 1)
