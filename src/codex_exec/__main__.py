from codex_exec.cli import cli_main

cli_main()
