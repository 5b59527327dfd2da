"""
Token migration report.

Usage: python3 scripts/analyze_migrations.py [min_sol]
"""
import os
import sys
import asyncio

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migration_analytics.core.db import init_db, close_db
from migration_analytics.engines.grouping import playbook, service
from migration_analytics.engines.grouping.filters import QueryFilters
from migration_analytics.ingestion.store import PostgresRecordStore


async def run_report(min_sol: float = 1):
    await init_db()
    try:
        store = PostgresRecordStore()

        summary = await service.summary(store, playbook.PATTERN, QueryFilters(min_max_sol=min_sol))
        print("-" * 70)
        print("OVERALL STATISTICS")
        print(f"Total Groups:             {summary.total_groups}")
        print(f"Total Tokens:             {summary.total_tokens}")
        print(f"Total Migrated:           {summary.total_migrated}")
        print(f"Overall Migration Rate:   {summary.overall_migration_rate:.2f}%")
        print(f"Avg Tokens per Group:     {summary.avg_tokens_per_group:.2f}")
        print(f"Avg Migration Rate/Group: {summary.avg_migration_rate_per_group:.2f}%")

        print("-" * 70)
        print("TOP MINT PATTERNS (by migration rate)")
        for idx, g in enumerate((await playbook.most_successful_patterns(store, min_sol))[:10], 1):
            print(f"#{idx} {g.group_key}")
            print(f"   Rate: {g.migration_rate:.2f}% ({g.migrated_tokens}/{g.total_tokens}) | "
                  f"Avg Max SOL: {g.avg_max_sol:.4f} | Total: {g.total_max_sol:.4f}")

        print("-" * 70)
        print("SELL THRESHOLDS (pattern + price + limit)")
        groups = await service.simulate_thresholds(
            store, playbook.PUBLISHER_CONFIG, QueryFilters(min_max_sol=min_sol),
            service.ThresholdOptions(limit=10),
        )
        for g in groups:
            t = g.thresholds
            if t is None:
                continue
            print(f"{g.group_key} ({g.total_tokens} tokens, risk {t.risk_level})")
            print(f"   Recommended: +{t.optimal.threshold:.4f} SOL -> sell at {t.recommended_sell_sol:.4f} "
                  f"({t.optimal.win_rate * 100:.1f}% win)")
            print(f"   Conservative: +{t.conservative.threshold:.4f} | Aggressive: +{t.aggressive.threshold:.4f}")

        print("-" * 70)
        print("MIGRATION RATE DISTRIBUTION")
        dist = await playbook.pattern_rate_distribution(store, min_sol)
        for label, count in dist["distribution"].items():
            print(f"{label:<20} {count:>4}")
        print(f"Average: {dist['avg_migration_rate']:.2f}% over {dist['total_groups']} groups")
    finally:
        await close_db()


if __name__ == "__main__":
    min_sol = float(sys.argv[1]) if len(sys.argv) > 1 else 1
    asyncio.run(run_report(min_sol))
