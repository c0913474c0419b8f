"""SQLite persistence for sessions and resumes."""
