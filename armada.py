#!/usr/bin/env python3
"""
Unified CLI for fleet trip and maintenance tracking.

Commands:
  status         - Show overdue maintenance alerts
  vehicles       - List vehicles
  log            - View the trip log
  start          - Start a trip on an available vehicle
  end            - End the ongoing trip of a vehicle
  maintain       - Record a service, oil change or battery check
  add-vehicle    - Register a vehicle (admin)
  delete-vehicle - Remove an available vehicle (admin)
  users          - List users (admin)
  add-user       - Create a user (admin)
  edit-user      - Change username and role (admin)
  passwd         - Change a password
  delete-user    - Delete a user (admin)
  check          - Report vehicles whose status disagrees with their trips
  export-csv     - Export the trip log as CSV
  report-pdf     - Printable report of one completed trip
  table-pdf      - Printable table of the trip log
"""

import argparse
import base64
import mimetypes
import sys
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

import reports
import settings
from logging_config import setup_logging
from models import (
    Fleet,
    FleetError,
    MaintenanceAlert,
    MaintenanceKind,
    Mutation,
    Session,
    TripController,
    UserDirectory,
    ValidationError,
    Vehicle,
    VehicleRegistry,
)
from models.timestamps import format_local, parse_timestamp, utc_now

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[int]) -> str:
    """Format an odometer reading or distance for display."""
    return f"{km:,}".replace(",", ".") if km is not None else "-"


def format_time(value) -> str:
    return format_local(value, settings.TIMEZONE)


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def photo_data_url(path: Path) -> str:
    """Read an image file into a base64 data URL."""
    mime = mimetypes.guess_type(str(path))[0] or "image/jpeg"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


# =============================================================================
# Context
# =============================================================================


class Context:
    """Gateway, fleet state and controllers for one CLI invocation."""

    def __init__(self, args):
        self.gateway = settings.make_gateway(args.url or "", args.store or "")
        self.fleet = Fleet.load(self.gateway)
        self.session = Session()
        self.users = UserDirectory(self.fleet, self.gateway, self.session)
        self.registry = VehicleRegistry(self.fleet, self.gateway, self.session)
        self.trips = TripController(
            self.fleet,
            self.gateway,
            self.session,
            notes=settings.make_note_generator() if getattr(args, "ai_notes", False) else None,
        )
        if args.user:
            self.users.authenticate(args.user, args.password or "")

    def close(self) -> None:
        self.gateway.close()


# =============================================================================
# Status command
# =============================================================================


def make_alert_table(alerts: List[MaintenanceAlert]) -> List[List[str]]:
    """Convert alerts to table rows."""
    return [
        [
            alert.vehicle.name,
            alert.kind.value,
            alert.reason,
            format_time(alert.due_date),
        ]
        for alert in alerts
    ]


def cmd_status(ctx: Context, args):
    """Show overdue maintenance alerts."""
    now = parse_timestamp(args.date) if args.date else utc_now()
    alerts = ctx.fleet.alerts(now)

    print(f"Vehicles: {len(ctx.fleet.vehicles)}")
    in_use = [v for v in ctx.fleet.vehicles if not v.is_available]
    print(f"In use: {len(in_use)}")
    print()

    if not alerts:
        print("Tidak ada peringatan perawatan.")
        return 0

    headers = ["Kendaraan", "Perawatan", "Alasan", "Jatuh Tempo"]
    print("PERINGATAN PERAWATAN:")
    print(tabulate(make_alert_table(alerts), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Vehicles command
# =============================================================================


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    rows = []
    for v in vehicles:
        rows.append(
            [
                v.id,
                v.plate_number,
                v.brand,
                v.year,
                v.color,
                v.status.value,
                format_time(v.last_service_date),
                format_time(v.last_oil_change_date),
                format_time(v.last_accu_check_date),
            ]
        )
    return rows


def cmd_vehicles(ctx: Context, args):
    """List vehicles."""
    vehicles = ctx.fleet.vehicles
    if args.available:
        vehicles = [v for v in vehicles if v.is_available]
    if not vehicles:
        print("Belum ada kendaraan.")
        return 0
    headers = ["ID", "Nomor Polisi", "Merk", "Tahun", "Warna", "Status", "Servis", "Oli", "Aki"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Log command
# =============================================================================


def filtered_log(ctx: Context, args) -> List[Mutation]:
    """The trip log with the --driver/--since/--until filters applied."""
    try:
        return reports.filter_mutations(
            ctx.fleet.mutations,
            driver=args.driver,
            start_date=args.since,
            end_date=args.until,
        )
    except ValueError:
        raise ValidationError("Tanggal harus berformat YYYY-MM-DD.") from None


def make_log_table(mutations: List[Mutation], fleet: Fleet) -> List[List[str]]:
    rows = []
    for m in mutations:
        vehicle = fleet.find_vehicle(m.vehicle_id)
        rows.append(
            [
                m.id,
                vehicle.name if vehicle else "N/A",
                m.driver,
                truncate(m.destination),
                format_time(m.start_time),
                format_time(m.end_time),
                format_km(m.distance),
                m.status.value,
            ]
        )
    return rows


def cmd_log(ctx: Context, args):
    """View the trip log, newest first."""
    mutations = filtered_log(ctx, args)

    print(f"Total trips: {len(ctx.fleet.mutations)}")
    if args.driver or args.since or args.until:
        print(f"Showing: {len(mutations)} (filtered)")
    print()

    if not mutations:
        print("Tidak ada data perjalanan yang cocok dengan filter.")
        return 0

    headers = ["ID", "Kendaraan", "Pengemudi", "Tujuan", "Mulai", "Selesai", "Jarak (km)", "Status"]
    print(tabulate(make_log_table(mutations, ctx.fleet), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Trip commands
# =============================================================================


def cmd_start(ctx: Context, args):
    """Start a trip on an available vehicle."""
    vehicle = ctx.fleet.get_vehicle(args.vehicle_id)
    intent = ctx.trips.select_vehicle(vehicle)
    if intent.mutation is not None:
        raise ValidationError(f"Kendaraan {vehicle.plate_number} sedang dalam perjalanan.")

    photo = None
    if args.photo:
        if not args.photo.exists():
            raise ValidationError(f"File not found: {args.photo}")
        photo = photo_data_url(args.photo)

    mutation = ctx.trips.start_trip(vehicle, args.driver, args.destination, args.km, photo)
    print(f"Perjalanan dimulai: {mutation.id}")
    print(f"  Kendaraan:  {vehicle.name}")
    print(f"  Pengemudi:  {mutation.driver}")
    print(f"  Tujuan:     {mutation.destination}")
    print(f"  KM Awal:    {format_km(mutation.start_km)}")
    return 0


def cmd_end(ctx: Context, args):
    """End the ongoing trip of a vehicle."""
    vehicle = ctx.fleet.get_vehicle(args.vehicle_id)
    intent = ctx.trips.select_vehicle(vehicle)
    if intent.mutation is None:
        raise ValidationError(f"Kendaraan {vehicle.plate_number} tidak sedang dalam perjalanan.")

    notes = args.notes
    if notes is None and args.ai_notes:
        notes = ctx.trips.generate_trip_notes(intent.mutation)
        print("Catatan:")
        print(notes)
        print()

    completed = ctx.trips.end_trip(intent.mutation, args.km, notes)
    print(f"Perjalanan selesai: {completed.id}")
    print(f"  KM Akhir:   {format_km(completed.end_km)}")
    print(f"  Jarak:      {format_km(completed.distance)} km")
    print(f"  Laporan:    {reports.report_url(completed.id)}")
    return 0


def cmd_maintain(ctx: Context, args):
    """Record a maintenance kind as done now."""
    vehicle = ctx.fleet.get_vehicle(args.vehicle_id)
    updated = ctx.trips.acknowledge_maintenance(vehicle, args.kind)
    print(f"Perawatan '{args.kind}' dicatat untuk {updated.name}.")
    return 0


# =============================================================================
# Vehicle registry commands
# =============================================================================


def cmd_add_vehicle(ctx: Context, args):
    """Register a vehicle."""
    vehicle = ctx.registry.add_vehicle(
        args.plate,
        args.brand,
        args.year,
        args.color,
        args.service_date,
        args.oil_date,
        args.accu_date,
    )
    print(f"Kendaraan ditambahkan: {vehicle.id} {vehicle.name}")
    return 0


def cmd_delete_vehicle(ctx: Context, args):
    """Remove an available vehicle."""
    vehicle = ctx.fleet.get_vehicle(args.vehicle_id)
    ctx.registry.delete_vehicle(vehicle.id)
    print(f"Kendaraan dihapus: {vehicle.name}")
    return 0


# =============================================================================
# User commands
# =============================================================================


def cmd_users(ctx: Context, args):
    """List users."""
    users = ctx.users.list_users()
    if ctx.users.initial_setup:
        print("Initial setup: create the first user to replace the default admin.")
        print()
    rows = [[u.id, u.username, u.role.value] for u in users]
    print(tabulate(rows, headers=["ID", "Username", "Peran"], tablefmt="simple"))
    return 0


def cmd_add_user(ctx: Context, args):
    user = ctx.users.create_user(args.username, args.new_password, args.role)
    print(f"Pengguna ditambahkan: {user.id} {user.username} ({user.role.value})")
    return 0


def cmd_edit_user(ctx: Context, args):
    user = ctx.users.update_user(args.user_id, args.username, args.role)
    print(f"Pengguna diperbarui: {user.id} {user.username} ({user.role.value})")
    return 0


def cmd_passwd(ctx: Context, args):
    user = ctx.users.change_password(args.user_id, args.new_password)
    print(f"Password diperbarui untuk {user.username}.")
    return 0


def cmd_delete_user(ctx: Context, args):
    """Delete a user after confirmation."""

    def confirm(question: str) -> bool:
        if args.yes:
            return True
        answer = input(f"{question} [y/N] ")
        return answer.strip().lower() in ("y", "ya", "yes")

    if ctx.users.delete_user(args.user_id, confirm):
        print("Pengguna dihapus.")
    else:
        print("Dibatalkan.")
    return 0


# =============================================================================
# Check command
# =============================================================================


def cmd_check(ctx: Context, args):
    """Report vehicles whose status disagrees with their trips."""
    problems = ctx.fleet.find_inconsistencies()
    if not problems:
        print("OK: status kendaraan konsisten dengan data perjalanan.")
        return 0
    print(f"Ditemukan {len(problems)} ketidakcocokan:")
    for problem in problems:
        print(f"  - {problem}")
    return 1


# =============================================================================
# Report commands
# =============================================================================


def write_output(path: Path, data: bytes) -> None:
    path.write_bytes(data)
    print(f"Saved {path} ({len(data):,} bytes)")


def cmd_export_csv(ctx: Context, args):
    mutations = filtered_log(ctx, args)
    text = reports.export_csv(mutations, ctx.fleet.vehicles)
    write_output(args.output or Path(reports.CSV_FILENAME), text.encode("utf-8"))
    return 0


def cmd_report_pdf(ctx: Context, args):
    mutation = ctx.fleet.get_mutation(args.mutation_id)
    vehicle = ctx.fleet.find_vehicle(mutation.vehicle_id)
    pdf = reports.single_report_pdf(mutation, vehicle)
    write_output(
        args.output or Path(reports.single_report_filename(mutation, vehicle)), pdf
    )
    return 0


def cmd_table_pdf(ctx: Context, args):
    mutations = filtered_log(ctx, args)
    pdf = reports.table_report_pdf(mutations, ctx.fleet.vehicles)
    write_output(args.output or Path(reports.TABLE_PDF_FILENAME), pdf)
    return 0


# =============================================================================
# Main
# =============================================================================

COMMANDS = {
    "status": cmd_status,
    "vehicles": cmd_vehicles,
    "log": cmd_log,
    "start": cmd_start,
    "end": cmd_end,
    "maintain": cmd_maintain,
    "add-vehicle": cmd_add_vehicle,
    "delete-vehicle": cmd_delete_vehicle,
    "users": cmd_users,
    "add-user": cmd_add_user,
    "edit-user": cmd_edit_user,
    "passwd": cmd_passwd,
    "delete-user": cmd_delete_user,
    "check": cmd_check,
    "export-csv": cmd_export_csv,
    "report-pdf": cmd_report_pdf,
    "table-pdf": cmd_table_pdf,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet trip and maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --store armada.yaml status
  %(prog)s --store armada.yaml log --driver budi --since 2024-01-01
  %(prog)s --user admin --password password add-vehicle \\
      --plate "B 1234 XYZ" --brand "Toyota Avanza" --year 2022 --color Hitam \\
      --service-date 2024-01-15 --oil-date 2024-03-01 --accu-date 2023-09-01
  %(prog)s --user budi --password rahasia start v1a2b3c --driver Budi \\
      --destination Bandung --km 15000 --photo budi.jpg
  %(prog)s --user budi --password rahasia end v1a2b3c --km 15200 --ai-notes
  %(prog)s report-pdf m4d5e6f -o laporan.pdf
""",
    )
    parser.add_argument("--store", type=str, help="Path to the YAML store file")
    parser.add_argument("--url", type=str, help="Spreadsheet web-app script URL")
    parser.add_argument("--user", type=str, help="Username to log in as")
    parser.add_argument("--password", type=str, help="Password for --user")
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.LOG_LEVEL,
        help="Logging level (default: %(default)s)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Filters shared by the log and the log exports
    filters = argparse.ArgumentParser(add_help=False)
    filters.add_argument(
        "--driver",
        type=str,
        help="Filter to drivers containing text (case-insensitive)",
    )
    filters.add_argument("--since", type=str, help="Trips started on/after date (YYYY-MM-DD)")
    filters.add_argument("--until", type=str, help="Trips started on/before date (YYYY-MM-DD)")

    status_parser = subparsers.add_parser("status", help="Show overdue maintenance alerts")
    status_parser.add_argument(
        "--date",
        type=str,
        help="Evaluate alerts at this date instead of now (YYYY-MM-DD)",
    )

    vehicles_parser = subparsers.add_parser("vehicles", help="List vehicles")
    vehicles_parser.add_argument(
        "--available", action="store_true", help="Only show available vehicles"
    )

    subparsers.add_parser("log", parents=[filters], help="View the trip log")

    start_parser = subparsers.add_parser("start", help="Start a trip")
    start_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    start_parser.add_argument("--driver", type=str, required=True, help="Driver name")
    start_parser.add_argument("--destination", type=str, required=True, help="Destination")
    start_parser.add_argument("--km", type=str, required=True, help="Start odometer (km)")
    start_parser.add_argument("--photo", type=Path, help="Driver photo image file")

    end_parser = subparsers.add_parser("end", help="End the ongoing trip of a vehicle")
    end_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    end_parser.add_argument("--km", type=str, required=True, help="End odometer (km)")
    end_parser.add_argument("--notes", type=str, help="Trip notes")
    end_parser.add_argument(
        "--ai-notes",
        action="store_true",
        help="Generate notes with the text-generation service when --notes is absent",
    )

    maintain_parser = subparsers.add_parser("maintain", help="Record maintenance as done now")
    maintain_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    maintain_parser.add_argument(
        "kind", choices=[k.value for k in MaintenanceKind], help="Maintenance kind"
    )

    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Register a vehicle")
    add_vehicle_parser.add_argument("--plate", type=str, required=True, help="Plate number")
    add_vehicle_parser.add_argument("--brand", type=str, required=True, help="Brand/model")
    add_vehicle_parser.add_argument("--year", type=str, required=True, help="Model year")
    add_vehicle_parser.add_argument("--color", type=str, required=True, help="Color")
    add_vehicle_parser.add_argument(
        "--service-date", type=str, required=True, help="Last service (YYYY-MM-DD)"
    )
    add_vehicle_parser.add_argument(
        "--oil-date", type=str, required=True, help="Last oil change (YYYY-MM-DD)"
    )
    add_vehicle_parser.add_argument(
        "--accu-date", type=str, required=True, help="Last battery check (YYYY-MM-DD)"
    )

    delete_vehicle_parser = subparsers.add_parser("delete-vehicle", help="Remove a vehicle")
    delete_vehicle_parser.add_argument("vehicle_id", type=str, help="Vehicle id")

    subparsers.add_parser("users", help="List users")

    add_user_parser = subparsers.add_parser("add-user", help="Create a user")
    add_user_parser.add_argument("username", type=str, help="New username")
    add_user_parser.add_argument("new_password", type=str, help="New user's password")
    add_user_parser.add_argument(
        "--role", type=str, default="Operator", help="Admin or Operator (default: Operator)"
    )

    edit_user_parser = subparsers.add_parser("edit-user", help="Change username and role")
    edit_user_parser.add_argument("user_id", type=str, help="User id")
    edit_user_parser.add_argument("--username", type=str, required=True, help="Username")
    edit_user_parser.add_argument("--role", type=str, required=True, help="Admin or Operator")

    passwd_parser = subparsers.add_parser("passwd", help="Change a password")
    passwd_parser.add_argument("user_id", type=str, help="User id")
    passwd_parser.add_argument("new_password", type=str, help="New password")

    delete_user_parser = subparsers.add_parser("delete-user", help="Delete a user")
    delete_user_parser.add_argument("user_id", type=str, help="User id")
    delete_user_parser.add_argument(
        "--yes", action="store_true", help="Do not ask for confirmation"
    )

    subparsers.add_parser("check", help="Check vehicle status against trips")

    csv_parser = subparsers.add_parser(
        "export-csv", parents=[filters], help="Export the trip log as CSV"
    )
    csv_parser.add_argument("-o", "--output", type=Path, help="Output file")

    report_parser = subparsers.add_parser("report-pdf", help="PDF report of one trip")
    report_parser.add_argument("mutation_id", type=str, help="Trip id")
    report_parser.add_argument("-o", "--output", type=Path, help="Output file")

    table_parser = subparsers.add_parser(
        "table-pdf", parents=[filters], help="PDF table of the trip log"
    )
    table_parser.add_argument("-o", "--output", type=Path, help="Output file")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level.upper())

    try:
        ctx = Context(args)
    except FleetError as e:
        print(f"Error: {e.message}")
        return 1

    try:
        return COMMANDS[args.command](ctx, args)
    except FleetError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main() or 0)
