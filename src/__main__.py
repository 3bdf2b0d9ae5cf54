from ghostdraft.cli import app

app()
