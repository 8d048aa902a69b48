"""Deciders: who answers accept/skip/replace for each queued member.

The merge driver builds a :class:`DecisionRequest` per new or conflicting
member and asks a decider. Raising :class:`MergeQuit` from ``decide`` stops
the rest of the queue for the current file.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

import click

from templatemerge.engine._types import Decision, DecisionRequest, ItemKind
from templatemerge.engine.summarizer import describe_request
from templatemerge.errors import MergeQuit

logger = logging.getLogger(__name__)

CONFLICT_STRATEGIES = ("prompt", "keep-existing", "use-generated")

# Choice key -> terminal decision; "view", "diff" and "quit" are handled in the loop.
_NEW_ITEM_CHOICES = {"add": Decision.ACCEPT, "skip": Decision.SKIP}
_CONFLICT_CHOICES = {
    "keep": Decision.KEEP_EXISTING,
    "replace": Decision.REPLACE,
    "skip": Decision.SKIP,
}


class Decider(Protocol):
    def decide(self, request: DecisionRequest) -> Decision: ...


def _strategy_decision(strategy: str) -> Decision:
    if strategy == "use-generated":
        return Decision.REPLACE
    return Decision.KEEP_EXISTING


class AutoDecider:
    """Accept every new member; resolve conflicts by a fixed strategy.

    With the ``prompt`` strategy there is nobody to ask, so the existing
    member is kept.
    """

    def __init__(self, conflict_strategy: str = "keep-existing") -> None:
        if conflict_strategy not in CONFLICT_STRATEGIES:
            msg = f"Unknown conflict strategy: {conflict_strategy}"
            raise ValueError(msg)
        self.conflict_strategy = conflict_strategy

    def decide(self, request: DecisionRequest) -> Decision:
        if request.kind is ItemKind.CONFLICT:
            return _strategy_decision(self.conflict_strategy)
        return Decision.ACCEPT


class PromptDecider:
    """Ask on the terminal, one member at a time.

    Viewing the code or the diff re-asks the same question; only a
    terminal choice leaves the loop. ``quit`` (or Ctrl-C) raises
    :class:`MergeQuit`. Conflicts are only asked about when the strategy
    is ``prompt``.
    """

    def __init__(
        self,
        conflict_strategy: str = "prompt",
        *,
        echo: Callable[[str], None] = click.echo,
        prompt: Callable[..., str] = click.prompt,
    ) -> None:
        if conflict_strategy not in CONFLICT_STRATEGIES:
            msg = f"Unknown conflict strategy: {conflict_strategy}"
            raise ValueError(msg)
        self.conflict_strategy = conflict_strategy
        self._echo = echo
        self._prompt = prompt

    def decide(self, request: DecisionRequest) -> Decision:
        if request.kind is ItemKind.CONFLICT:
            if self.conflict_strategy != "prompt":
                return _strategy_decision(self.conflict_strategy)
            terminal = _CONFLICT_CHOICES
            question = "Keep existing, replace with generated, or skip?"
        else:
            terminal = _NEW_ITEM_CHOICES
            question = f"Add {request.name}?"

        choices = [*terminal, "view", "diff", "quit"]
        self._echo(describe_request(request))
        while True:
            try:
                answer = self._prompt(
                    question,
                    type=click.Choice(choices),
                    default=choices[0],
                    show_choices=True,
                )
            except click.Abort as e:
                raise MergeQuit("Interrupted") from e

            if answer == "view":
                self._echo(request.render_code())
            elif answer == "diff":
                self._echo(request.render_diff())
            elif answer == "quit":
                logger.info("Quit requested at %s", request.name)
                raise MergeQuit(f"Quit at {request.name}")
            else:
                return terminal[answer]
