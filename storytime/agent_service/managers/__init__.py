"""Session lifecycle, room event routing and the session registry."""
