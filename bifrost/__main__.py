from bifrost.main import app

app(prog_name="bifrost")
