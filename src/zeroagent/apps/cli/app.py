# src/zeroagent/apps/cli/app.py
from __future__ import annotations

import asyncio
import functools
import json
import os
import traceback
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv
import typer
from rich import print

# .env is loaded once, before Settings reads the environment
load_dotenv(find_dotenv(usecwd=True))

from zeroagent.apps.bootstrap import init_ctx
from zeroagent.config import const
from zeroagent.domain import SkillStatus, Tier
from zeroagent.services.agent.orchestrator import Orchestrator
from zeroagent.services.agent_context import get_ctx
from zeroagent.services.settings import Settings
from zeroagent.services.skill.errors import SkillError

app = typer.Typer(help="zeroagent: install, run and schedule skills")

# -------- helpers --------


def _run_safe(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SkillError as e:
            if os.getenv("ZEROAGENT_CLI_DEBUG") == "1":
                traceback.print_exc()
            print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        except Exception:
            if os.getenv("ZEROAGENT_CLI_DEBUG") == "1":
                traceback.print_exc()
            raise

    return wrapper


def _orch() -> Orchestrator:
    return get_ctx().orchestrator


def _parse_value(raw: str) -> Any:
    """``--value 30`` is a number, ``--value rain`` stays a string."""
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    return value if isinstance(value, (int, float, str)) and not isinstance(value, bool) else raw


async def _serve(orch: Orchestrator) -> None:
    """Keeps the loop alive while background handles exist; Ctrl-C stops everything."""
    try:
        if orch.scheduler.status().idle:
            print("[yellow]No background skills are active.[/yellow]")
            return
        print("[cyan]Agent is running, press Ctrl-C to stop.[/cyan]")
        await asyncio.Event().wait()
    finally:
        await orch.shutdown()


# -------- root callback (composition root) --------


@app.callback()
def main(
    base_dir: Optional[str] = typer.Option(None, "--base-dir", help="Agent home (default ~/.zeroagent or from .env/ENV)"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Settings profile"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Mirror the JSON log to stderr"),
):
    """
    Runs before every command: builds the agent context.
    """
    settings = Settings.from_sources().with_overrides(base_dir=base_dir, profile=profile)
    init_ctx(settings, console_log=verbose)


# -------- agent --------


@app.command("start")
@_run_safe
def start():
    """Boot the agent, restore scheduled skills and keep running."""

    async def _start() -> None:
        orch = _orch()
        state = await orch.boot()
        status = orch.scheduler.status()
        print(f"[green]{state.agent_name}[/green] ready ({state.tier.value} tier), {status.scheduled_count} scheduled skill(s)")
        await _serve(orch)

    try:
        asyncio.run(_start())
    except KeyboardInterrupt:
        print("[cyan]Stopped.[/cyan]")


@app.command("status")
@_run_safe
def status():
    """Show agent state and installed skills."""
    summary = _orch().summary()
    st = summary.state
    print(f"[bold]{st.agent_name}[/bold] v{st.version}")
    print(f"  tier:    {st.tier.value}")
    print(f"  status:  {st.status.value}")
    print(f"  skills:  {summary.skill_count}")
    if summary.slots_remaining is not None:
        print(f"  slots:   {summary.slots_remaining} of {const.FREE_SKILL_LIMIT} free")
    if st.last_run:
        mark = "[green]ok[/green]" if st.last_run.success else "[red]failed[/red]"
        print(f"  last run: {st.last_run.skill_name} at {st.last_run.ran_at} {mark}")


@app.command("whoami")
@_run_safe
def whoami():
    """Print agent name, tier and version."""
    st = _orch().summary().state
    typer.echo(f"{st.agent_name} ({st.tier.value}) v{st.version}")


@app.command("tier")
@_run_safe
def tier(value: str = typer.Argument(..., help="free | cloud")):
    """Switch the agent tier."""
    try:
        new_tier = Tier(value.strip().lower())
    except ValueError:
        raise typer.BadParameter("Allowed: free, cloud")
    st = _orch().set_tier(new_tier)
    print(f"[green]Tier set to {st.tier.value}[/green]")


@app.command("rename")
@_run_safe
def rename(name: str):
    """Rename the agent."""
    st = _orch().rename(name)
    print(f"[green]Agent renamed to {st.agent_name}[/green]")


# -------- skills --------


@app.command("install")
@_run_safe
def install(
    source: str = typer.Argument(..., help="skills:<name>, github:<owner>/<repo>, git/https URL or a local directory"),
    skill: Optional[str] = typer.Option(None, "--skill", help="Install under this name"),
):
    """Install a skill."""
    res = asyncio.run(_orch().install(source, skill))
    entry = res.entry
    if res.already_installed:
        print(f"[yellow]{entry.name} is already installed[/yellow]")
        return
    if res.locked:
        print(f"[yellow]Installed {entry.name} (locked: upgrade to Cloud or free a slot to activate)[/yellow]")
    else:
        print(f"[green]Installed {entry.name}[/green] v{entry.version} ({entry.execution_mode.value})")
    if res.slots_remaining is not None:
        print(f"{res.slots_remaining} free slot(s) left")


@app.command("run")
@_run_safe
def run(
    name: str,
    input_json: Optional[str] = typer.Option(None, "--input", "-i", help='Inputs as a JSON object, e.g. \'{"city": "sf"}\''),
):
    """Run a skill once."""
    inputs = {}
    if input_json:
        try:
            inputs = json.loads(input_json)
        except ValueError as e:
            raise typer.BadParameter(f"--input is not valid JSON: {e}")
        if not isinstance(inputs, dict):
            raise typer.BadParameter("--input must be a JSON object")
    res = asyncio.run(_orch().run(name, inputs))
    if not res.success:
        print(f"[red]{name} failed: {res.error}[/red]")
        raise typer.Exit(1)
    if res.result is not None:
        typer.echo(res.result if isinstance(res.result, str) else json.dumps(res.result, ensure_ascii=False, default=str))
    else:
        print(f"[green]{name} done[/green]")


@app.command("list")
@_run_safe
def list_cmd(json_output: bool = typer.Option(False, "--json", help="Print JSON")):
    """
    Installed skills.
    JSON format: {"skills": [{"name": "...", "version": "...", "status": "..."}, ...]}
    """
    entries = _orch().list_skills()
    if json_output:
        payload = {"skills": [e.to_dict() for e in entries]}
        typer.echo(json.dumps(payload, ensure_ascii=False))
        return
    if not entries:
        typer.echo("No skills installed.")
        return
    colors = {SkillStatus.ACTIVE: "green", SkillStatus.LOCKED: "red", SkillStatus.INACTIVE: "yellow"}
    for e in entries:
        c = colors[e.status]
        print(f"- {e.name} v{e.version} [{c}]{e.status.value}[/{c}] {e.execution_mode.value}")


@app.command("remove")
@_run_safe
def remove(name: str):
    """Stop and uninstall a skill."""
    asyncio.run(_orch().remove(name))
    print(f"[green]Removed {name}[/green]")


@app.command("schedule")
@_run_safe
def schedule(name: str, cron: str = typer.Argument(..., help='Cron expression, e.g. "0 9 * * *"')):
    """Run a skill on a cron schedule (Cloud tier)."""

    async def _schedule() -> bool:
        orch = _orch()
        try:
            return await orch.schedule(name, cron)
        finally:
            await orch.shutdown()

    if not asyncio.run(_schedule()):
        print(f"[red]Could not schedule {name}, see the log for details[/red]")
        raise typer.Exit(1)
    print(f"[green]{name} scheduled ({cron})[/green], it runs while `zeroagent start` is up")


@app.command("trigger")
@_run_safe
def trigger(
    name: str,
    condition: str,
    value: Optional[str] = typer.Option(None, "--value", help="Threshold handed to the skill's check()"),
):
    """Run a skill whenever its check(value) holds (Cloud tier). Watches until Ctrl-C."""

    async def _trigger() -> bool:
        orch = _orch()
        parsed = _parse_value(value) if value is not None else None
        if not await orch.trigger(name, condition, parsed):
            await orch.shutdown()
            return False
        await _serve(orch)
        return True

    try:
        ok = asyncio.run(_trigger())
    except KeyboardInterrupt:
        print("[cyan]Stopped.[/cyan]")
        return
    if not ok:
        print(f"[red]Could not start trigger for {name}, see the log for details[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
