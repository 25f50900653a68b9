"""gesture-trainer CLI: train and recognize gestures from recorded sessions.

Usage:
    gesture-trainer strategies                   List strategy variants
    gesture-trainer train NAME SESSION           Train a gesture from a session file
    gesture-trainer recognize SESSION            Recognize gestures in a session file
    gesture-trainer show GESTURES                List gestures in a gestures file
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import typer

from gesture_trainer.config import TrainerConfig
from gesture_trainer.controller import GestureController
from gesture_trainer.events import EventKind
from gesture_trainer.store import GestureFormatError, GestureStore
from gesture_trainer.strategies import StrategyRegistry

app = typer.Typer(
    name="gesture-trainer",
    help="🖐  Train and recognize 3D hand gestures from recorded sensor sessions.",
    add_completion=False,
)


@app.callback()
def main(
    log_level: str = typer.Option("warning", help="Log level"),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _registry(strategy_dir: Optional[str]) -> StrategyRegistry:
    registry = StrategyRegistry.with_defaults()
    if strategy_dir:
        registry.load_directory(strategy_dir)
    return registry


def _build_controller(
    variant: str,
    config_path: Optional[str],
    strategy_dir: Optional[str],
    seed: Optional[int] = None,
    **options,
) -> GestureController:
    registry = _registry(strategy_dir)
    if variant not in registry:
        typer.echo(f"❌ Unknown strategy variant: {variant} (known: {', '.join(registry.names)})", err=True)
        raise typer.Exit(1)

    config = None
    if config_path:
        config = TrainerConfig.from_yaml(config_path)

    return GestureController(
        config=config,
        variant=variant,
        registry=registry,
        # Sessions replay instantly, so countdown ticks run immediately too
        scheduler=lambda delay, callback: callback(),
        rng=np.random.default_rng(seed),
        **options,
    )


def _load_session(session: str):
    from gesture_trainer.recorder import FramePlayer

    path = Path(session)
    if not path.exists():
        typer.echo(f"❌ Session not found: {session}", err=True)
        raise typer.Exit(1)
    try:
        return FramePlayer.load(path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        typer.echo(f"❌ Could not load session: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def strategies(
    strategy_dir: Optional[str] = typer.Option(None, "--strategies", help="Directory of extra variant files"),
):
    """List the available strategy variants."""
    for variant in _registry(strategy_dir):
        typer.echo(f"{variant.name:20s} {variant.description}")
        if variant.config:
            opts = ", ".join(f"{k}={v}" for k, v in variant.config.items())
            typer.echo(f"{'':20s} defaults: {opts}")


@app.command()
def train(
    name: str = typer.Argument(..., help="Gesture name"),
    session: str = typer.Argument(..., help="Recorded session (.json) containing the demonstrations"),
    gestures: str = typer.Option("gestures.json", "-g", "--gestures", help="Gestures file to add to"),
    variant: str = typer.Option("geometric", help="Strategy variant"),
    config: Optional[str] = typer.Option(None, help="Trainer config YAML"),
    samples: Optional[int] = typer.Option(None, help="Training samples to record (overrides config)"),
    replace: bool = typer.Option(False, help="Replace the gesture if it already exists"),
    seed: Optional[int] = typer.Option(None, help="Random seed for sample distribution"),
    strategy_dir: Optional[str] = typer.Option(None, "--strategies", help="Directory of extra variant files"),
):
    """Train a gesture by replaying a recorded session."""
    options = {"training_countdown": 0}
    if samples is not None:
        options["training_gestures"] = samples
    controller = _build_controller(variant, config, strategy_dir, seed=seed, **options)

    gestures_path = Path(gestures)
    if gestures_path.exists():
        try:
            controller.store.load_from_file(gestures_path)
        except (OSError, GestureFormatError) as e:
            typer.echo(f"❌ Could not load gestures: {e}", err=True)
            raise typer.Exit(1)

    if name in controller.store:
        if not replace:
            typer.echo(f"❌ Gesture '{name}' already exists in {gestures} (use --replace)", err=True)
            raise typer.Exit(1)
        controller.store.remove(name)

    player = _load_session(session)
    completed = []
    controller.on(EventKind.TRAINING_GESTURE_SAVED, lambda e: typer.echo(f"   📥 Sample {len(e.samples)} saved"))
    controller.on(EventKind.TRAINING_COMPLETE, completed.append)

    typer.echo(f"🎓 Training '{name}' from {session} ({player.frame_count} frames)")
    controller.create(name)
    for frame in player.play():
        controller.on_frame(frame)
        if completed:
            break

    if not completed:
        template = controller.store.get(name)
        recorded = len(template.samples) if template else 0
        typer.echo(
            f"❌ Session ended after {recorded}/{controller.config.training_gestures} sample(s)",
            err=True,
        )
        raise typer.Exit(1)

    result = completed[0]
    controller.store.save_to_file(gestures_path)
    kind = "pose" if result.is_pose else "gesture"
    typer.echo(f"✅ Trained {kind} '{name}' with {len(result.samples)} stored sample(s)")
    typer.echo(f"💾 Saved to: {gestures}")


@app.command()
def recognize(
    session: str = typer.Argument(..., help="Recorded session (.json)"),
    gestures: str = typer.Option("gestures.json", "-g", "--gestures", help="Gestures file"),
    variant: str = typer.Option("geometric", help="Strategy variant"),
    config: Optional[str] = typer.Option(None, help="Trainer config YAML"),
    strategy_dir: Optional[str] = typer.Option(None, "--strategies", help="Directory of extra variant files"),
):
    """Replay a session and print every recognition outcome."""
    controller = _build_controller(variant, config, strategy_dir)

    try:
        loaded = controller.store.load_from_file(gestures)
    except (OSError, GestureFormatError) as e:
        typer.echo(f"❌ Could not load gestures: {e}", err=True)
        raise typer.Exit(1)

    player = _load_session(session)
    typer.echo(f"▶️  Replaying {session} ({player.frame_count} frames) against {loaded} gesture(s)")

    recognized = 0
    attempts = 0
    for frame in player.play():
        result = controller.on_frame(frame)
        if result is None:
            continue
        attempts += 1
        if result.recognized:
            recognized += 1
            typer.echo(f"   🤚 {frame.timestamp:8.2f}s  {result.name} (score: {result.score:.2f})")
        else:
            typer.echo(f"   ❔ {frame.timestamp:8.2f}s  unknown (best score: {result.score:.2f})")

    typer.echo(f"\n✅ Replay complete. {recognized}/{attempts} segment(s) recognized.")


@app.command()
def show(
    gestures: str = typer.Argument("gestures.json", help="Gestures file"),
):
    """List the gestures stored in a gestures file."""
    store = GestureStore()
    try:
        store.load_from_file(gestures)
    except (OSError, GestureFormatError) as e:
        typer.echo(f"❌ Could not load gestures: {e}", err=True)
        raise typer.Exit(1)

    if not len(store):
        typer.echo("No gestures stored.")
        return
    for template in store:
        kind = "pose" if template.is_pose else "gesture"
        typer.echo(f"{template.name:20s} {kind:8s} {len(template.samples)} sample(s)")


if __name__ == "__main__":
    app()
