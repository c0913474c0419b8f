"""HTTP binding for the interview session controller."""
