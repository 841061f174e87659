"""CLI entry point."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import typer
from dotenv import load_dotenv

from unoengine.config import Settings
from unoengine.engine import PlayerKind, UnoError

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(help="UNO against computer players, backed by a persistent game store")


def _setup(store: Optional[str], log_level: Optional[str]) -> Settings:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if store:
        settings = replace(settings, store=store)
    return settings


def _computer_agent(settings: Settings, name: str):
    from unoengine.agents.llm_agent import LLMStrategist
    from unoengine.agents.strategist import HeuristicStrategist

    if settings.llm_provider:
        return LLMStrategist(provider=settings.llm_provider, model=settings.llm_model)
    return HeuristicStrategist(name=name)


def _echo_stats(engine) -> None:
    stats = engine.get_statistics()
    typer.echo("Statistics:")
    typer.echo(f"  games finished: {stats.games_finished}")
    typer.echo(f"  turns played:   {stats.turns_played}")
    typer.echo(f"  computer wins:  {stats.ai_wins}")
    typer.echo(f"  human wins:     {stats.human_wins}")
    typer.echo(f"  draw2 played:   {stats.draw2_count}")
    typer.echo(f"  wild4 played:   {stats.wild4_count}")


@app.command()
def play(
    opponents: int = typer.Option(3, "--opponents", "-n", min=1, max=9, help="Number of computer players"),
    name: str = typer.Option("You", "--name", help="Your display name"),
    store: Optional[str] = typer.Option(None, "--store", help="'memory' or a SQLite file (default: $UNO_STORE)"),
    ai_delay: Optional[float] = typer.Option(None, "--ai-delay", help="Seconds computer players think"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Play one game at the console against computer players. Resets the session."""
    from unoengine.agents.human_agent import HumanAgent
    from unoengine.orchestration.game_runner import GameRunner
    from unoengine.service import UnoEngine
    from unoengine.store import open_store

    settings = _setup(store, log_level)
    try:
        with open_store(settings.store) as handle:
            engine = UnoEngine(handle, seed=seed if seed is not None else settings.seed)
            ids = engine.setup_session(opponents, human_name=name)
            agents = {ids[0]: HumanAgent(name=name, output_fn=typer.echo)}
            for pid in ids[1:]:
                agents[pid] = _computer_agent(settings, engine.get_player(pid).name)
            delay = ai_delay if ai_delay is not None else settings.ai_delay
            result = GameRunner(engine, agents, ai_delay=delay).run()
            winner = engine.get_player(result.winner).name if result.winner is not None else "None"
            typer.echo(f"Winner: {winner}")
            typer.echo(f"Turns: {result.num_turns}")
    except UnoError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def simulate(
    games: int = typer.Option(10, "--games", "-g", min=1, help="Number of games"),
    players: int = typer.Option(4, "--players", "-p", min=2, max=10, help="Computer players per game"),
    store: Optional[str] = typer.Option(None, "--store", help="'memory' or a SQLite file (default: $UNO_STORE)"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Run a series of all-computer games."""
    from unoengine.orchestration.tournament import run_series
    from unoengine.service import UnoEngine
    from unoengine.store import open_store

    settings = _setup(store, log_level or "WARNING")
    try:
        with open_store(settings.store) as handle:
            engine = UnoEngine(handle, seed=seed if seed is not None else settings.seed)
            names = [f"AI Bot {i}" for i in range(1, players + 1)]
            ids = engine.create_players(names, [PlayerKind.COMPUTER] * players)
            agents = {pid: _computer_agent(settings, n) for pid, n in zip(ids, names)}
            wins = run_series(engine, agents, num_games=games)
            typer.echo("Series results:")
            for pid, w in sorted(wins.items(), key=lambda x: -x[1]):
                typer.echo(f"  {engine.get_player(pid).name}: {w} wins")
            _echo_stats(engine)
    except UnoError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def stats(
    store: Optional[str] = typer.Option(None, "--store", help="SQLite file (default: $UNO_STORE)"),
) -> None:
    """Show statistics over every game in a store."""
    from unoengine.service import UnoEngine
    from unoengine.store import open_store

    settings = _setup(store, "WARNING")
    with open_store(settings.store) as handle:
        _echo_stats(UnoEngine(handle))


@app.command()
def players(
    store: Optional[str] = typer.Option(None, "--store", help="SQLite file (default: $UNO_STORE)"),
) -> None:
    """List registered players and their cumulative scores."""
    from unoengine.service import UnoEngine
    from unoengine.store import open_store

    settings = _setup(store, "WARNING")
    with open_store(settings.store) as handle:
        for player in UnoEngine(handle).list_players():
            typer.echo(f"  {player}  score={player.score}")


if __name__ == "__main__":
    app()
