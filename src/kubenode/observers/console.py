# src/kubenode/observers/console.py
import typer

from .events import BaseEvent, BootstrapStage, ProvisionStep


class ConsoleObserver:
    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, BootstrapStage):
            typer.echo(event.message)
            return
        if isinstance(event, ProvisionStep):
            typer.echo(f"[{event.machine}] {event.step}")
            return
        d = event.dict()
        k = event.__class__.__name__
        typer.echo(f"[{d['ts']}] {k} machine={d['machine']} data={{"
                   + ", ".join(f"{x}={y}" for x, y in d.items() if x not in ('ts', 'run_id', 'cluster', 'machine')) + "}")
