"""Local data and reminder core for the DoneDay task manager."""
