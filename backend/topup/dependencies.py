"""
FastAPI dependencies — per-application services stored on ``app.state``.
"""
from fastapi import Request

from topup.config import Settings
from topup.services.topup_service import TopUpService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_topup_service(request: Request) -> TopUpService:
    return request.app.state.topup_service


def client_ip(request: Request):
    return request.client.host if request.client else None
