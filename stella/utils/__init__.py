"""Small text helpers shared by the agents."""
