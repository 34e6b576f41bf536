from agentvisor.main import run

run()
