"""surveyor: run terraform plan for configured projects and post it to Slack."""

__version__ = "0.3.0"
