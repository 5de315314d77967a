from typing import Annotated

from fastapi import Depends, Request

from app.config import Settings
from app.services.engine import PeopleSearchEngine


def get_engine(request: Request) -> PeopleSearchEngine:
    return request.app.state.engine


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


EngineDep = Annotated[PeopleSearchEngine, Depends(get_engine)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
