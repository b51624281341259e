"""ASGI entrypoint for the photo sorter API."""

from photo_sorter.api.app import create_app
from photo_sorter.containers import build_container

app = create_app(build_container())
