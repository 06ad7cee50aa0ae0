"""ASGI entrypoint for the Intake API."""

from intake.api.app import create_app
from intake.containers import build_container

app = create_app(build_container())
