"""ASGI entrypoint for the diet plan API."""

from flexcoach_diet.api.app import create_app
from flexcoach_diet.containers import build_container

app = create_app(build_container())
