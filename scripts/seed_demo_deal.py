"""
Seed a demo deal with a rent roll, itemized costs and an acquisition loan.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dealkpi.calculations.metrics import compute_kpis
from dealkpi.db.database import get_db_context, init_db
from dealkpi.db.models import (
    Deal, DealRehabItem, DealUnit, DealExpense, DealClosingCost,
    DealHoldingCost, DealLoan, DealOtherIncome
)
from dealkpi.services.snapshots import deal_to_snapshot

DEMO_DEAL_NAME = "418 Maple Fourplex"


def main():
    init_db()

    with get_db_context() as db:
        existing = db.query(Deal).filter(Deal.name == DEMO_DEAL_NAME).first()
        if existing:
            print(f"Deal already exists: {existing.name} (ID: {existing.id}). Skipping.")
            return

        deal = Deal(
            name=DEMO_DEAL_NAME,
            address="418 Maple St",
            purchase_price=420000,
            units=4,
            vacancy_rate=0.05,
            bad_debt_rate=0.02,
            capex_reserve_per_unit=300,
            operating_reserve_months=6,
            start_to_stabilization_months=6,
            loan_percentage=0.75,
            refinance_ltv=0.75,
            market_cap_rate=0.065,
            exit_cap_rate=0.07,
        )

        # Rehab budget
        deal.rehab_items.append(DealRehabItem(category="Interior", description="Kitchens", total_cost=36000))
        deal.rehab_items.append(DealRehabItem(category="Exterior", description="Roof", total_cost=14000))

        # Rent roll: two in-place leases, two vacant units at market
        deal.unit_records.append(DealUnit(unit_number="1", bedrooms=2, is_occupied=True, current_rent=1150, market_rent=1350))
        deal.unit_records.append(DealUnit(unit_number="2", bedrooms=2, is_occupied=True, current_rent=1200, market_rent=1350))
        deal.unit_records.append(DealUnit(unit_number="3", bedrooms=2, is_occupied=False, market_rent=1350))
        deal.unit_records.append(DealUnit(unit_number="4", bedrooms=3, is_occupied=False, market_rent=1500))

        # Operating expenses
        deal.expenses.append(DealExpense(expense_name="Property Taxes", monthly_amount=650))
        deal.expenses.append(DealExpense(expense_name="Insurance", monthly_amount=210))
        deal.expenses.append(DealExpense(expense_name="Management", is_percent_of_rent=True, percentage=0.08))

        deal.closing_costs.append(DealClosingCost(description="Title and escrow", amount=6500))
        deal.holding_costs.append(DealHoldingCost(description="Utilities", monthly_amount=450))
        deal.other_income.append(DealOtherIncome(description="Laundry", monthly_amount=120))

        # Acquisition loan: 75% of purchase plus rehab, 12 months interest-only
        deal.loans.append(
            DealLoan(
                name="Acquisition Loan",
                loan_type="acquisition",
                loan_amount=352500,
                interest_rate=0.0725,
                amortization_years=30,
                io_months=12,
                is_active=True,
            )
        )

        db.add(deal)
        db.commit()
        db.refresh(deal)

        kpis = compute_kpis(deal_to_snapshot(deal))

        print(f"\nCreated deal: {deal.name} (ID: {deal.id})")
        print(f"  All-in cost: ${kpis.all_in_cost:,.0f}")
        print(f"  NOI: ${kpis.net_operating_income:,.0f}")
        print(f"  ARV: ${kpis.arv:,.0f}")
        print(f"  Cash flow: ${kpis.cash_flow:,.0f}")
        print(f"  Cash-on-cash: {kpis.cash_on_cash_return:.2%}")
        print(f"  DSCR: {kpis.dscr:.2f}")
        print(f"  Cash out on refinance: ${kpis.cash_out:,.0f}")


if __name__ == "__main__":
    main()
