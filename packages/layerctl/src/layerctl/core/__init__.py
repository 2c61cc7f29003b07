"""Runtime helpers shared by the CLI and check runners."""
