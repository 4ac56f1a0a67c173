from dockerprom.cli import app

app(prog_name="dockerprom")
