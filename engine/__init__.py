"""Engine: turn/pitch/recruitment flows and the game session."""
