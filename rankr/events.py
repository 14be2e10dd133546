"""Event system for decoupling the voting core from presentation.

The reconciliation loop emits events without knowing how, or whether, they
are rendered. A console display, a web socket bridge or a test recorder can
implement ``EventHandler``; ``NullEventHandler`` is the default.
"""

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from rankr.elo_ranker.models import Match, Outcome, Phase


class EventHandler(Protocol):
    """Protocol for handlers of voting-core events."""

    def on_phase_change(
        self,
        previous: "Phase",
        current: "Phase",
        **kwargs: Any
    ) -> None:
        """Called when the voting flow moves to a new phase."""
        ...

    def on_roster_updated(
        self,
        roster_size: int,
        changed: int,
        **kwargs: Any
    ) -> None:
        """Called after an authoritative snapshot was merged.

        Args:
            roster_size: Number of competitors after the merge
            changed: Number of competitors whose values changed
            **kwargs: Additional context
        """
        ...

    def on_match_start(
        self,
        match: "Match",
        **kwargs: Any
    ) -> None:
        """Called when a new match is drawn and shown to the voter."""
        ...

    def on_outcome(
        self,
        outcome: "Outcome",
        **kwargs: Any
    ) -> None:
        """Called when a vote has been turned into an Outcome."""
        ...

    def on_mutation_failed(
        self,
        outcome: "Outcome",
        error: BaseException,
        **kwargs: Any
    ) -> None:
        """Called when the durable write for ``outcome`` was rejected.

        The optimistic projection is left in place; the next snapshot is the
        source of truth.
        """
        ...

    def on_subscription_error(
        self,
        error: BaseException,
        **kwargs: Any
    ) -> None:
        """Called when the snapshot stream dropped and will be restarted."""
        ...

    def on_roster_seeded(
        self,
        count: int,
        **kwargs: Any
    ) -> None:
        """Called after an empty collection was seeded with ``count`` competitors."""
        ...


class NullEventHandler:
    """Event handler that does nothing."""

    def on_phase_change(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_roster_updated(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_match_start(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_outcome(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_mutation_failed(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_subscription_error(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_roster_seeded(self, *args: Any, **kwargs: Any) -> None:
        pass
