"""
Command-line interface tools for the MindCare level detection service.
"""

import asyncio
import json
from collections.abc import Coroutine
from typing import Any

import httpx
import typer

from .levels import level_name
from .models import AnalysisReport, LevelChangeSuggestion

DEFAULT_BASE_URL = "http://localhost:8000"

app = typer.Typer(help="MindCare level detection CLI tools")


# MARK: - CLI Entry Points


def cli_set_mood() -> None:
    """Entry point for mood-set CLI command."""
    import typer

    typer.run(set_mood)


def cli_report() -> None:
    """Entry point for level-report CLI command."""
    import typer

    typer.run(report)


def cli_apply() -> None:
    """Entry point for level-apply CLI command."""
    import typer

    typer.run(apply)


def cli_set_level() -> None:
    """Entry point for level-set CLI command."""
    import typer

    typer.run(set_level)


# MARK: - Commands


@app.command()
def set_mood(
    value: int = typer.Argument(..., min=1, max=5, help="Mood from 1 to 5"),
    note: str | None = typer.Option(None, "--note", "-n", help="Optional note"),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the MindCare service"
    ),
) -> None:
    """Record today's mood."""

    async def _set_mood() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.put(
                f"{base_url}/mood", json={"value": value, "notes": note}
            )
            response.raise_for_status()
            result = response.json()
            print(f"Mood for {result['date']} set to: {result['mood']['value']}")

    _run_with_error_handling(_set_mood(), base_url)


@app.command()
def report(
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the MindCare service"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Show the current level and the latest detection."""

    async def _report() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/level/report")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2))
                return

            print(format_report(AnalysisReport.model_validate(result)))

    _run_with_error_handling(_report(), base_url)


@app.command()
def suggest(
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the MindCare service"
    ),
) -> None:
    """Show a level change suggestion, if there is one."""

    async def _suggest() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/level/suggestion")
            response.raise_for_status()
            data = response.json()["suggestion"]
            if data is None:
                print("No level change suggested")
                return

            print(format_suggestion(LevelChangeSuggestion.model_validate(data)))

    _run_with_error_handling(_suggest(), base_url)


@app.command()
def apply(
    level: int = typer.Argument(..., min=1, max=3, help="Suggested level to accept"),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the MindCare service"
    ),
) -> None:
    """Accept the level the service currently suggests."""

    async def _apply() -> bool:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/level/suggestion")
            response.raise_for_status()
            data = response.json()["suggestion"]
            suggestion = (
                LevelChangeSuggestion.model_validate(data) if data else None
            )

            refusal = apply_refusal(suggestion, level)
            if refusal:
                print(refusal)
                return False

            response = await client.post(
                f"{base_url}/level/apply", json={"level": level}
            )
            response.raise_for_status()
            print(f"Level changed to {level} ({level_name(level)})")
            return True

    if not _run_with_error_handling(_apply(), base_url):
        raise typer.Exit(1)


@app.command()
def set_level(
    level: int = typer.Argument(..., min=1, max=3, help="Level to use"),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the MindCare service"
    ),
) -> None:
    """Pick a level by hand, regardless of any suggestion."""

    async def _set_level() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.put(f"{base_url}/level", json={"level": level})
            response.raise_for_status()
            print(f"Level set to {level} ({level_name(level)})")

    _run_with_error_handling(_set_level(), base_url)


# MARK: - Formatting


def apply_refusal(suggestion: LevelChangeSuggestion | None, level: int) -> str | None:
    """Why a level cannot be accepted as a suggestion, or None when it can."""
    if suggestion is None:
        return "No level change is currently suggested; use set-level instead"
    if suggestion.suggested_level != level:
        return (
            f"The suggested level is {suggestion.suggested_level}, not {level}; "
            "use set-level to pick a different level"
        )
    return None


def format_suggestion(suggestion: LevelChangeSuggestion) -> str:
    """Describe a suggested level change in one short paragraph."""
    return (
        f"Suggested change: {level_name(suggestion.current_level)} -> "
        f"{level_name(suggestion.suggested_level)} "
        f"({suggestion.confidence}% confidence)\n{suggestion.reason}"
    )


def format_report(analysis_report: AnalysisReport) -> str:
    detection = analysis_report.detection
    lines = [
        f"Current level: {analysis_report.current_level} "
        f"({level_name(analysis_report.current_level)})"
    ]

    if detection.suggested_level is None:
        lines.append(f"No suggestion: {detection.reason}")
        return "\n".join(lines)

    lines.append(
        f"Suggested level: {detection.suggested_level} "
        f"({level_name(detection.suggested_level)}), "
        f"{detection.confidence}% confidence"
    )
    lines.append(f"Reason: {detection.reason}")

    analysis = detection.analysis
    if analysis is not None:
        dist = analysis.distribution
        lines.append(
            f"Average {analysis.average}, stability {analysis.stability}, "
            f"trend {analysis.trend}"
        )
        lines.append(
            f"Days: {dist.low_days} low, {dist.neutral_days} neutral, "
            f"{dist.good_days} good of {dist.total}"
        )

    if analysis_report.needs_change:
        lines.append("A level change may help.")
    return "\n".join(lines)


# MARK: - Private Helpers


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> Any:
    """Run an async coroutine with standardized error handling."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
