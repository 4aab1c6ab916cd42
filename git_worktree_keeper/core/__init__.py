"""Core logic: target resolution and the worktree commands."""
