#!/usr/bin/env python3
from __future__ import annotations
import sys, json, argparse

from sqlalchemy.orm import Session
from backoffice.core.logging import configure_logging
from backoffice.db.session import SessionLocal, transaction
from backoffice.services.pricing.backfill import run_backfill


'''
运维脚本：给所有商品补成本并按当前加价百分比重算价格
    - 成本来源：已存成本 → 最近采购单 → 门店价反推 → 线路价反推
    - 可重复执行（幂等）
    - 用法：
    python scripts/backfill_product_pricing.py --mode tolerant
    python scripts/backfill_product_pricing.py --mode strict --json
'''
def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Backfill product cost of goods and recompute store/route prices.")
    ap.add_argument("--mode", choices=["tolerant", "strict"], default=None,
                    help="tolerant: skip failing products; strict: abort and roll back on first error (default: PRICING_BACKFILL_MODE)")
    ap.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = ap.parse_args(argv)

    configure_logging()
    db: Session = SessionLocal()
    try:
        with transaction(db):
            report = run_backfill(db, mode=args.mode)
    except Exception as e:
        print(f"ERROR: backfill failed, nothing was committed: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        return 0

    print(f"Products updated: {report.updated}")
    for source, count in sorted(report.sources.items()):
        print(f"  cost from {source}: {count}")
    print(f"Products skipped: {len(report.skipped)}")
    for s in report.skipped:
        print(f"  - [{s.product_id}] {s.product_name}: {s.reason}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
