#!/usr/bin/env python3
"""標準プラン (会員区分 × 期間種別) を追加するスクリプト

既に同じ区分・期間のプランがある場合はスキップする。
"""
import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend"))

from gymadmin.core.database import SessionLocal, transaction
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.services import plan_service

# 期間種別ごとの日数
DURATION_DAYS = {
    "walk-in": 1,
    "monthly": 30,
    "semester": 120,
    "half-year": 180,
    "yearly": 365,
}

DURATION_LABELS = {
    "walk-in": "Walk-in",
    "monthly": "Monthly",
    "semester": "Semester",
    "half-year": "Half-Year",
    "yearly": "Yearly",
}

CATEGORY_LABELS = {
    "student": "Student",
    "staff": "Staff",
    "public": "Public",
}

# 価格 (GHS)。semester は学生・教職員のみ
PRICES = {
    "student": {"walk-in": "10.00", "monthly": "80.00", "semester": "250.00", "half-year": "400.00", "yearly": "700.00"},
    "staff": {"walk-in": "15.00", "monthly": "120.00", "semester": "400.00", "half-year": "600.00", "yearly": "1100.00"},
    "public": {"walk-in": "25.00", "monthly": "200.00", "half-year": "1000.00", "yearly": "1800.00"},
}


def main():
    db = SessionLocal()
    created = 0
    skipped = 0

    try:
        with transaction(db):
            for category, prices in PRICES.items():
                for duration_type, price in prices.items():
                    name = f"{CATEGORY_LABELS[category]} {DURATION_LABELS[duration_type]}"
                    exists = db.query(SubscriptionPlan).filter(
                        SubscriptionPlan.user_category == category,
                        SubscriptionPlan.duration_type == duration_type,
                    ).first()
                    if exists:
                        print(f"  スキップ (既存): {name}")
                        skipped += 1
                        continue

                    plan = plan_service.create_plan(
                        db,
                        name=name,
                        user_category=category,
                        duration_type=duration_type,
                        price_amount=Decimal(price),
                        duration_days=DURATION_DAYS[duration_type],
                    )
                    print(f"  作成完了: plan_id={plan.id}, {name}, GHS {price}")
                    created += 1

        print(f"\nプラン追加完了: 作成={created}, スキップ={skipped}")

    except Exception as e:
        print(f"\nエラー: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
