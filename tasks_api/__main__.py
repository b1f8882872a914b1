from tasks_api.main import run

run()
