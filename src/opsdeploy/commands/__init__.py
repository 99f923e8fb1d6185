"""CLI command modules. Each exposes setup_parser(parser) and execute(args)."""
