from winget_batch.cli import app

app()
