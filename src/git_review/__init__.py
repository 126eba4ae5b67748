"""git-review - terminal review of working-tree changes with git, fzf and delta."""

__version__ = "0.1.0"
