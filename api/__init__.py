"""HTTP facade over the interview engine."""
