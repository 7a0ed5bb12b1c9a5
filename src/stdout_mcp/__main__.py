from stdout_mcp.cli.main import run

run()
