from __future__ import annotations

from collections.abc import Callable

from .core.engine_core import run_core
from .core.interfaces import CompletionCallback
from .core.models import Session
from .data.content_loader import DrillRepository
from .ui.presenters import RichPresenter


def run_play(
    drill_id: str,
    *,
    repository: DrillRepository | None = None,
    no_color: bool = False,
    on_complete: CompletionCallback | None = None,
    _input_fn: Callable[[str], str] = input,
) -> Session:
    repo = repository if repository is not None else DrillRepository()
    drill = repo.get(drill_id)
    presenter = RichPresenter(no_color=no_color, input_fn=_input_fn)
    return run_core(drill, presenter, on_complete=on_complete)
