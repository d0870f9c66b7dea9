from fastapi import Request

from fym.config import Settings
from fym.storage.base import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings
