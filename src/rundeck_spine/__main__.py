from rundeck_spine.cli.app import app

app()
