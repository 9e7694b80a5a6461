"""parley.app: the interactive chat application built on parley.tui and parley.ai."""
