"""Command-line interface for electricity billing."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from . import db
from .billing import calculate_bill, validate_meter_reading
from .bills import (
    STATUSES,
    bill_breakdown,
    bill_due_date,
    generate_bills,
    get_bill,
    get_payment_for_bill,
    list_bills,
    pay_bill,
    reverse_payment,
)
from .customers import (
    create_customer,
    delete_customer,
    get_customer,
    list_customers,
    update_customer,
)
from .errors import PlannerError
from .formatting import format_breakdown, format_currency, format_kwh, format_number, format_watt
from .log import setup_logging
from .models import UsageReading
from .periods import month_name
from .reports import summary
from .tariffs import (
    delete_tariff,
    get_tariff,
    list_tariffs,
    load_tariffs_from_yaml,
    save_tariffs_to_db,
)
from .usage import delete_usage, import_from_csv, record_usage, update_usage

console = Console()


@click.group()
@click.option("--db-path", type=click.Path(), help="Path to SQLite database")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path, verbose):
    """Electricity billing - tariffs, meter usage, bills and payments."""
    setup_logging(logging.DEBUG if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path) if db_path else None


# Database commands
@cli.group()
def database():
    """Database management commands."""
    pass


@database.command("init")
@click.option("--no-tariffs", is_flag=True, help="Don't load the default tariff table")
@click.pass_context
def db_init(ctx, no_tariffs):
    """Initialize the database schema."""
    db.init_db(ctx.obj["db_path"])
    console.print("[green]Database initialized successfully[/green]")

    if not no_tariffs:
        try:
            tariffs = load_tariffs_from_yaml()
        except (OSError, PlannerError) as e:
            console.print(f"[yellow]Tariffs not loaded: {e}[/yellow]")
            return
        count = save_tariffs_to_db(tariffs, ctx.obj["db_path"])
        console.print(f"[green]Loaded {count} tariff(s) from config[/green]")


@database.command("stats")
@click.pass_context
def db_stats(ctx):
    """Show database statistics."""
    stats = db.get_stats(ctx.obj["db_path"])

    table = Table(title="Database Statistics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Tariffs", str(stats["tariffs"]))
    table.add_row("Customers", str(stats["customers"]))
    table.add_row("Usage records", str(stats["usage"]))
    table.add_row("Bills", str(stats["bills"]))
    for status, count in stats["bills_by_status"].items():
        table.add_row(f"  └ {status}", str(count))
    table.add_row("Payments", str(stats["payments"]))

    console.print(table)


# Tariff commands
@cli.group()
def tariff():
    """Tariff management commands."""
    pass


@tariff.command("load")
@click.option("--config", type=click.Path(exists=True), help="Path to tariffs.yaml")
@click.pass_context
def tariff_load(ctx, config):
    """Load tariffs from YAML config."""
    config_path = Path(config) if config else None
    try:
        tariffs = load_tariffs_from_yaml(config_path)
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    count = save_tariffs_to_db(tariffs, ctx.obj["db_path"])
    console.print(f"[green]Loaded {count} tariff(s)[/green]")


@tariff.command("list")
@click.pass_context
def tariff_list(ctx):
    """List stored tariffs."""
    tariffs = list_tariffs(ctx.obj["db_path"])
    if not tariffs:
        console.print("[yellow]No tariffs found[/yellow]")
        return

    table = Table(title="Tariffs")
    table.add_column("Power", style="cyan", justify="right")
    table.add_column("Rate/kWh", justify="right")

    for t in tariffs:
        table.add_row(format_watt(t.power_tier), f"Rp {format_number(t.rate_per_kwh, 2)}")

    console.print(table)


@tariff.command("delete")
@click.argument("power_tier", type=int)
@click.pass_context
def tariff_delete(ctx, power_tier):
    """Delete the tariff for a power tier (VA)."""
    try:
        delete_tariff(power_tier, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(f"[green]Deleted tariff {format_watt(power_tier)}[/green]")


# Customer commands
@cli.group()
def customer():
    """Customer commands."""
    pass


@customer.command("add")
@click.option("--name", required=True, help="Customer name")
@click.option("--meter", "meter_number", required=True, help="Meter number")
@click.option("--tier", "power_tier", type=int, required=True, help="Subscribed power (VA)")
@click.option("--address", help="Service address")
@click.pass_context
def customer_add(ctx, name, meter_number, power_tier, address):
    """Register a customer."""
    try:
        c = create_customer(name, meter_number, power_tier, address, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(f"[green]Created customer {c.id} ({c.name}, {format_watt(c.power_tier)})[/green]")


@customer.command("list")
@click.pass_context
def customer_list(ctx):
    """List customers."""
    customers = list_customers(ctx.obj["db_path"])
    if not customers:
        console.print("[yellow]No customers found[/yellow]")
        return

    table = Table(title="Customers")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Meter", style="dim")
    table.add_column("Power", justify="right")
    table.add_column("Address")

    for c in customers:
        table.add_row(str(c.id), c.name, c.meter_number, format_watt(c.power_tier), c.address or "")

    console.print(table)


@customer.command("update")
@click.argument("customer_id", type=int)
@click.option("--name", help="Customer name")
@click.option("--meter", "meter_number", help="Meter number")
@click.option("--tier", "power_tier", type=int, help="Subscribed power (VA)")
@click.option("--address", help="Service address")
@click.pass_context
def customer_update(ctx, customer_id, name, meter_number, power_tier, address):
    """Update a customer's details."""
    try:
        c = update_customer(
            customer_id, name, meter_number, power_tier, address, ctx.obj["db_path"]
        )
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(f"[green]Updated customer {c.id} ({c.name}, {format_watt(c.power_tier)})[/green]")


@customer.command("delete")
@click.argument("customer_id", type=int)
@click.pass_context
def customer_delete(ctx, customer_id):
    """Delete a customer with no recorded usage."""
    try:
        delete_customer(customer_id, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(f"[green]Deleted customer {customer_id}[/green]")


# Usage commands
@cli.group()
def usage():
    """Meter usage commands."""
    pass


@usage.command("add")
@click.option("--customer", "customer_id", type=int, required=True, help="Customer ID")
@click.option("--month", type=int, required=True, help="Period month (1-12)")
@click.option("--year", type=int, required=True, help="Period year")
@click.option("--start", "meter_start", type=float, required=True, help="Meter reading at period start")
@click.option("--end", "meter_end", type=float, required=True, help="Meter reading at period end")
@click.pass_context
def usage_add(ctx, customer_id, month, year, meter_start, meter_end):
    """Record a meter reading for a period."""
    try:
        u = record_usage(customer_id, month, year, meter_start, meter_end, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(
        f"[green]Recorded {format_kwh(u.meter_end - u.meter_start)} for customer "
        f"{u.customer_id} in {month_name(u.period_month)} {u.period_year}[/green]"
    )


@usage.command("import")
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True, help="Path to usage CSV")
@click.pass_context
def usage_import(ctx, csv_path):
    """Import meter readings from CSV."""
    result = import_from_csv(Path(csv_path), ctx.obj["db_path"])
    console.print(f"[green]Imported {result['imported']} usage record(s)[/green]")
    if result["skipped"]:
        console.print(f"[yellow]Skipped {result['skipped']} row(s)[/yellow]")
    if result["rejected"]:
        console.print(f"[red]Rejected {result['rejected']} row(s) failing validation[/red]")


@usage.command("update")
@click.argument("usage_id", type=int)
@click.option("--start", "meter_start", type=float, help="Corrected reading at period start")
@click.option("--end", "meter_end", type=float, help="Corrected reading at period end")
@click.pass_context
def usage_update(ctx, usage_id, meter_start, meter_end):
    """Correct the readings of an unbilled usage record."""
    try:
        u = update_usage(usage_id, meter_start, meter_end, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(
        f"[green]Usage {u.id} now {format_kwh(u.meter_end - u.meter_start)} "
        f"({u.meter_start} - {u.meter_end})[/green]"
    )


@usage.command("delete")
@click.argument("usage_id", type=int)
@click.pass_context
def usage_delete(ctx, usage_id):
    """Delete an unbilled usage record."""
    try:
        delete_usage(usage_id, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(f"[green]Deleted usage {usage_id}[/green]")


# Bill commands
@cli.group()
def bill():
    """Bill commands."""
    pass


@bill.command("calc")
@click.option("--start", "meter_start", type=float, required=True, help="Meter reading at period start")
@click.option("--end", "meter_end", type=float, required=True, help="Meter reading at period end")
@click.option("--tier", "power_tier", type=int, required=True, help="Subscribed power (VA)")
@click.option("--months-late", type=int, default=0, help="Months past due (default: 0)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def bill_calc(ctx, meter_start, meter_end, power_tier, months_late, as_json):
    """Calculate a bill without storing anything."""
    try:
        rate = get_tariff(power_tier, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    check = validate_meter_reading(meter_start, meter_end)
    if not check.valid:
        console.print(f"[yellow]Warning: {check.reason}[/yellow]")

    breakdown = calculate_bill(UsageReading(meter_start, meter_end), rate, months_late)

    if as_json:
        console.print(json.dumps(breakdown.to_dict(), indent=2))
    else:
        console.print(format_breakdown(breakdown))


@bill.command("generate")
@click.option("--month", type=int, required=True, help="Period month (1-12)")
@click.option("--year", type=int, required=True, help="Period year")
@click.pass_context
def bill_generate(ctx, month, year):
    """Generate bills for all usage recorded in a period."""
    try:
        bills = generate_bills(month, year, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    if not bills:
        console.print("[yellow]No new bills to generate[/yellow]")
        return
    total = sum(b.total_due for b in bills)
    console.print(f"[green]Generated {len(bills)} bill(s) totalling {format_currency(total)}[/green]")


@bill.command("list")
@click.option("--status", type=click.Choice(STATUSES), help="Filter by status")
@click.option("--customer", "customer_id", type=int, help="Filter by customer ID")
@click.pass_context
def bill_list(ctx, status, customer_id):
    """List bills."""
    bills = list_bills(status, customer_id, ctx.obj["db_path"])
    if not bills:
        console.print("[yellow]No bills found[/yellow]")
        return

    table = Table(title="Bills")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Customer", justify="right")
    table.add_column("Period")
    table.add_column("Usage", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Status")

    for b in bills:
        status_text = "[green]paid[/green]" if b.status == "paid" else "[red]unpaid[/red]"
        table.add_row(
            str(b.id),
            str(b.customer_id),
            f"{month_name(b.period_month)} {b.period_year}",
            format_kwh(b.usage_kwh),
            format_currency(b.total_due),
            status_text,
        )

    console.print(table)


@bill.command("show")
@click.argument("bill_id", type=int)
@click.pass_context
def bill_show(ctx, bill_id):
    """Show a bill's breakdown."""
    try:
        b = get_bill(bill_id, ctx.obj["db_path"])
        c = get_customer(b.customer_id, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    console.print(f"[cyan]Bill {b.id}[/cyan] - {c.name} ({c.meter_number}, {format_watt(c.power_tier)})")
    console.print(f"Period: {month_name(b.period_month)} {b.period_year}")
    console.print(f"Due: {bill_due_date(b).isoformat()}")

    payment = get_payment_for_bill(b.id, ctx.obj["db_path"])
    if payment:
        console.print(format_breakdown(bill_breakdown(b, payment.months_late)))
        console.print(f"[green]Paid on {payment.paid_on.isoformat()}[/green]")
    else:
        console.print(format_breakdown(bill_breakdown(b)))
        console.print("[red]Unpaid[/red]")


@bill.command("pay")
@click.argument("bill_id", type=int)
@click.option(
    "--date",
    "paid_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Payment date (YYYY-MM-DD), defaults to today",
)
@click.pass_context
def bill_pay(ctx, bill_id, paid_date):
    """Record payment of a bill."""
    paid_on = paid_date.date() if paid_date else None
    try:
        payment = pay_bill(bill_id, paid_on, db_path=ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    console.print(
        f"[green]Bill {bill_id} paid: {format_currency(payment.total_paid)} "
        f"(payment {payment.id})[/green]"
    )
    if payment.late_penalty:
        console.print(
            f"[yellow]Includes late penalty of {format_currency(payment.late_penalty)} "
            f"({payment.months_late} month(s) late)[/yellow]"
        )


@bill.command("unpay")
@click.argument("payment_id", type=int)
@click.pass_context
def bill_unpay(ctx, payment_id):
    """Reverse a payment, returning its bill to unpaid."""
    try:
        b = reverse_payment(payment_id, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return
    console.print(f"[green]Reversed payment {payment_id}; bill {b.id} is unpaid[/green]")


# Report commands
@cli.command()
@click.option("--month", type=int, required=True, help="Period month (1-12)")
@click.option("--year", type=int, required=True, help="Period year")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def report(ctx, month, year, as_json):
    """Generate a billing summary for a period."""
    try:
        data = summary.get_period_summary(month, year, ctx.obj["db_path"])
    except PlannerError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    if as_json:
        console.print(json.dumps(data, indent=2))
    else:
        console.print(summary.format_period_summary_text(data))


if __name__ == "__main__":
    cli()
