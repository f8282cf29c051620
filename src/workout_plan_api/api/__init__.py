"""HTTP surface of the workout plan backend."""
