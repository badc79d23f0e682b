"""Start-up sequence of the API service: load configuration, build, run."""

from __future__ import annotations

from typing import Any, Callable, Protocol


class Runnable(Protocol):
    def run(self) -> None: ...


def run_main(load: Callable[[], Any], build: Callable[[Any], Runnable]) -> None:
    """Load the configuration, build the application from it and run it."""
    cfg = load()
    try:
        application = build(cfg)
    except Exception as exc:
        raise RuntimeError(f"app init failed: {exc}") from exc
    try:
        application.run()
    except Exception as exc:
        raise RuntimeError(f"app run failed: {exc}") from exc