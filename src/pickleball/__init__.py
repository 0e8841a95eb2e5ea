"""Team generation and game organization for pickleball rooms."""
