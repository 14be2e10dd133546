"""rankr: pairwise voting with an Elo-style global ranking."""

__version__ = "0.1.0"
