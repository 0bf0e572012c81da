from .run import cli

raise SystemExit(cli())
