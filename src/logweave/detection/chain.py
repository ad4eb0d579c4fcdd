"""Numbered attack-chain narrative built as an explicit fold."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AttackChain:
    """Immutable accumulator of numbered attack-chain entries.

    Each ``add`` returns a new chain whose next step is one higher, so
    numbering depends only on the order entries are added.
    """

    next_step: int = 1
    entries: tuple[str, ...] = field(default_factory=tuple)

    def add(self, narrative: str) -> "AttackChain":
        """Append ``"<step>. <narrative>"`` and advance the counter."""
        return AttackChain(
            next_step=self.next_step + 1,
            entries=(*self.entries, f"{self.next_step}. {narrative}"),
        )

    def to_list(self) -> list[str]:
        return list(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
