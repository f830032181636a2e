"""I/O buffering for the tape VM."""
