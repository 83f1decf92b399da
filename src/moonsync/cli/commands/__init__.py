# ABOUTME: Subcommands of the moonsync CLI, one module per command.
# ABOUTME: Each module exposes a single click command registered in moonsync.cli.
