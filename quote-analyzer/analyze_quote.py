"""CLI client for the Off-Plan Analyzer API: posts a quote and prints a terminal report.

Usage:
    python quote-analyzer/analyze_quote.py --price 1000000 --booking 2025-01 --handover 2027-01 \
        --milestone construction:50:30 --yield 7 --exit 18 --exit 24 --exit 36
    python quote-analyzer/analyze_quote.py --file quote.json --ltv 60 --rate 4.5
"""

import argparse
import asyncio
import json
import sys
from decimal import Decimal

import httpx


# ── Helpers ──────────────────────────────────────────────────────────────────

def _money(v, currency: str = "AED") -> str:
    return f"{currency} {float(v):,.0f}"


def _ratio(r: dict, as_percent: bool = True) -> str:
    if r["kind"] != "finite":
        return r["display"]
    if as_percent:
        return f"{float(r['value']) * 100:.2f}%"
    return f"{float(r['value']):.2f}"


def _month_year(value: str) -> dict:
    year, month = value.split("-")
    return {"year": int(year), "month": int(month)}


def _milestone(value: str) -> dict:
    """kind:trigger:percent, e.g. construction:50:30 or time:6:10."""
    kind, trigger, percent = value.split(":")
    return {"kind": kind, "trigger_value": trigger, "payment_percent": percent}


def _header(title: str) -> None:
    print(f"\n{'=' * 64}")
    print(f"  {title}")
    print(f"{'=' * 64}")


# ── Report sections ──────────────────────────────────────────────────────────

def print_schedule(data: dict) -> None:
    sched = data["schedule"]
    cur = data["currency"]
    _header("Payment Plan")
    print(f"  Handover:         month {sched['handover_month']}")
    print(f"  Pre-handover:     {float(sched['pre_handover_percent']):.1f}%")
    print(f"  On handover:      {float(sched['handover_percent']):.1f}%")
    print(f"  Post-handover:    {float(sched['post_handover_percent']):.1f}%")
    if sched.get("earliest_resale_month") is not None:
        print(f"  Resale allowed:   month {sched['earliest_resale_month']}")
    print()
    for e in sched["events"]:
        when = f"{e['calendar_year']}-{e['calendar_month']:02d}"
        print(f"  m{e['month']:>3}  {when}  {_money(e['amount'], cur):>16}  {', '.join(e['labels'])}")


def print_exits(data: dict) -> None:
    exits = data.get("exits", [])
    if not exits:
        return
    cur = data["currency"]
    _header("Exit Scenarios")
    print(f"  {'Mo':>3}  {'Exit Price':>16}  {'Capital':>16}  {'Profit':>16}  {'ROE':>9}  {'Ann.':>9}  {'IRR':>9}")
    for x in exits:
        marker = " *" if x["exit_month"] == data.get("best_exit_month") else ""
        handover = " (handover)" if x["is_handover_exit"] else ""
        print(
            f"  {x['exit_month']:>3}  {_money(x['exit_price'], cur):>16}  "
            f"{_money(x['total_capital_deployed'], cur):>16}  {_money(x['true_profit'], cur):>16}  "
            f"{_ratio(x['true_roe']):>9}  {_ratio(x['annualized_roe']):>9}  {_ratio(x['irr']):>9}"
            f"{handover}{marker}"
        )


def print_yearly_table(data: dict) -> None:
    years = data.get("yearly", [])
    if not years:
        return
    _header("Yearly Projection")
    phases = data.get("phase_months") or {}
    if phases:
        print(f"  Months by phase:  {', '.join(f'{k}={v}' for k, v in phases.items())}")
    print(f"  {'Yr':>3}  {'Value':>14}  {'Net Rent':>12}  {'Debt Svc':>12}  {'Cash Flow':>12}  {'Equity':>14}")
    for y in years:
        print(
            f"  {y['year']:>3}  {float(y['property_value']):>14,.0f}  {float(y['net_rent']):>12,.0f}  "
            f"{float(y['debt_service']):>12,.0f}  {float(y['net_cash_flow']):>12,.0f}  {float(y['equity']):>14,.0f}"
        )


def print_mortgage(data: dict) -> None:
    m = data.get("mortgage_summary")
    if not m:
        return
    cur = data["currency"]
    _header("Mortgage")
    print(f"  Loan Amount:          {_money(m['loan_amount'], cur)}")
    print(f"  Monthly Payment:      {_money(m['monthly_payment'], cur)}")
    if m["has_gap"]:
        print(f"  Gap at Handover:      {_money(m['gap_amount'], cur)} ({float(m['gap_percent']):.1f}%)")
    else:
        print("  Gap at Handover:      none (plan covers the equity)")
    print(f"  Upfront Fees:         {_money(m['total_upfront_fees'], cur)}")
    print(f"  Total Interest:       {_money(m['total_interest'], cur)}")
    for s in m.get("stress_scenarios", []):
        print(f"  @ {float(s['rate']):.2f}%:  payment {_money(s['monthly_payment'], cur)}, "
              f"cash flow {_money(s['net_cash_flow'], cur)} ({s['status']})")

    bands: dict[str, int] = {}
    for point in data.get("dscr", []):
        bands[point["band"]] = bands.get(point["band"], 0) + 1
    if bands:
        print(f"  DSCR months by band:  {', '.join(f'{k}={v}' for k, v in sorted(bands.items()))}")


def print_coverage(data: dict) -> None:
    cov = data.get("post_handover_coverage")
    if not cov:
        return
    cur = data["currency"]
    _header("Post-Handover Coverage")
    print(f"  Installments:         {_money(cov['total_due'], cur)} over {cov['months']} months")
    print(f"  Monthly Equivalent:   {_money(cov['monthly_equivalent'], cur)}")
    print(f"  Monthly Net Rent:     {_money(cov['monthly_rent'], cur)}")
    print(f"  Coverage:             {float(cov['coverage_percent']):.0f}% ({cov['status']})")


def print_warnings(data: dict) -> None:
    warnings = data.get("warnings", [])
    if not warnings:
        return
    _header("Warnings")
    for w in warnings:
        print(f"  [{w['code']}] {w['message']}")


# ── Main ─────────────────────────────────────────────────────────────────────

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Project an off-plan quote via the Off-Plan Analyzer API"
    )
    parser.add_argument("--file", help="JSON quote to start from (flags override it)")
    parser.add_argument("--price", type=Decimal, help="Base price")
    parser.add_argument("--booking", type=_month_year, help="Booking month, YYYY-MM")
    parser.add_argument("--handover", type=_month_year, help="Handover month, YYYY-MM")
    parser.add_argument("--down-payment", type=Decimal, help="Down payment percent")
    parser.add_argument(
        "--milestone",
        type=_milestone,
        action="append",
        help="Installment as kind:trigger:percent (repeatable)",
    )
    parser.add_argument("--yield", dest="rental_yield", type=Decimal, help="Gross rental yield percent")
    parser.add_argument("--exit", dest="exits", type=int, action="append", help="Exit month (repeatable)")
    parser.add_argument("--ltv", type=Decimal, help="Mortgage financing percent")
    parser.add_argument("--rate", type=Decimal, help="Mortgage interest rate percent")
    parser.add_argument("--term", type=int, help="Mortgage term in years")
    parser.add_argument("--s-curve", action="store_true", help="Use the S-curve construction timeline")
    parser.add_argument(
        "--api-url",
        default="http://localhost:8000",
        help="API base URL (default: http://localhost:8000)",
    )

    args = parser.parse_args()

    payload: dict = {}
    if args.file:
        with open(args.file) as f:
            payload = json.load(f)

    field_map = {
        "price": "base_price",
        "booking": "booking",
        "handover": "handover",
        "down_payment": "down_payment_percent",
        "milestone": "milestones",
        "rental_yield": "rental_yield_percent",
        "exits": "exit_months",
    }
    for cli_name, api_name in field_map.items():
        val = getattr(args, cli_name)
        if val is not None:
            payload[api_name] = val if not isinstance(val, Decimal) else str(val)

    if args.ltv is not None or args.rate is not None or args.term is not None:
        mortgage = payload.setdefault("mortgage", {})
        if args.ltv is not None:
            mortgage["financing_percent"] = str(args.ltv)
        if args.rate is not None:
            mortgage["interest_rate"] = str(args.rate)
        if args.term is not None:
            mortgage["loan_term_years"] = args.term
    if args.s_curve:
        payload["construction_curve"] = "s-curve"
    payload["include_monthly"] = False

    for required in ("base_price", "booking", "handover"):
        if required not in payload:
            parser.error(f"{required} is required (flag or --file)")

    url = f"{args.api_url}/api/v1/projection"

    async with httpx.AsyncClient(timeout=60) as client:
        try:
            resp = await client.post(url, json=payload)
        except httpx.ConnectError:
            print(f"Error: Could not connect to API at {args.api_url}", file=sys.stderr)
            print("Is the server running? Start with: uvicorn src.api.app:app --reload", file=sys.stderr)
            sys.exit(1)
        except httpx.TimeoutException:
            print("Error: Request timed out", file=sys.stderr)
            sys.exit(1)

        if resp.status_code != 200:
            print(f"Error: API returned {resp.status_code}", file=sys.stderr)
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            print(f"  {detail}", file=sys.stderr)
            sys.exit(1)

        data = resp.json()

    # Print report
    print_schedule(data)
    print_exits(data)
    print_yearly_table(data)
    print_mortgage(data)
    print_coverage(data)
    print_warnings(data)
    print()


if __name__ == "__main__":
    asyncio.run(main())
