# main.py

import argparse
import asyncio
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from core.config import settings
from core.logger import setup_logging
from core.models import Decision, FarmContext, SensorSample, Urgency
from engine import build_controller

console = Console()

URGENCY_STYLES = {
    Urgency.HIGH: "bold red",
    Urgency.MEDIUM: "bold yellow",
    Urgency.LOW: "bold green",
}

def show_vitals(sample: SensorSample):
    console.print(
        f"[dim]{sample.observed_at:%H:%M:%S}[/dim] "
        f"💧 {sample.soil_moisture_pct:.1f}%  🌡️ {sample.temperature_c:.1f}°C  "
        f"💨 {sample.humidity_pct:.1f}%  ⚗️ pH {sample.soil_ph:.1f}"
    )

def show_decision(decision: Decision):
    table = Table(title="Recommended Action", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Action", decision.action.value)
    table.add_row("Urgency", f"[{URGENCY_STYLES[decision.urgency]}]{decision.urgency.value}[/]")
    table.add_row("Headline", decision.title)
    table.add_row("Reason", decision.reason)
    if decision.duration_minutes is not None:
        table.add_row("Duration", f"{decision.duration_minutes} min")
    if decision.water_amount:
        table.add_row("Water", decision.water_amount)
    table.add_row("Source", decision.source.value)
    console.print(table)

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the irrigation decision loop for one farm.")
    parser.add_argument("--farm-id", default="frm_demo")
    parser.add_argument("--crop", default=settings.default_crop)
    parser.add_argument("--location", default="Sousse, Tunisia")
    parser.add_argument("--ticks", type=int, default=24, help="Number of poll ticks before stopping.")
    return parser.parse_args(argv)

async def run(args) -> None:
    farm = FarmContext(farm_id=args.farm_id, crop_type=args.crop, location=args.location)
    controller = build_controller(farm, on_vitals=show_vitals, on_decision=show_decision)

    console.print(f"[bold blue]Watching {farm.crop_type} farm {farm.farm_id} at {farm.location}...[/bold blue]")
    controller.start()
    try:
        await asyncio.sleep(max(args.ticks - 1, 0) * controller.poll_interval_s + 0.1)
    finally:
        controller.stop()

    if controller.current_disease_risk is not None:
        risk = controller.current_disease_risk
        console.print(f"Disease risk: [{URGENCY_STYLES[risk.risk]}]{risk.risk.value}[/] - {risk.explanation}")
    console.print(f"[bold]{controller.ai_attempts} AI attempt(s) over {args.ticks} tick(s).[/bold]")

if __name__ == "__main__":
    load_dotenv()
    setup_logging(settings.log_level)
    asyncio.run(run(parse_args()))
