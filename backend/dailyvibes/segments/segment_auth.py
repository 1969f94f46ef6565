from __future__ import annotations

from flask import Blueprint

from dailyvibes.services import accounts
from dailyvibes.utils.jwt_utils import create_access_token
from dailyvibes.utils.request_auth import json_body, str_field
from dailyvibes.utils.responses import ok

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register():
    data = json_body()
    u = accounts.register(
        username=str_field(data, "username"),
        email=str_field(data, "email"),
        password=str_field(data, "password"),
        confirm_password=str_field(data, "confirmPassword"),
    )
    token = create_access_token(u.id)
    return ok({"token": token, "user": u.to_dict()}, message="Registration successful", status=201)


@auth_bp.post("/login")
def login():
    data = json_body()
    u = accounts.login(str_field(data, "username"), str_field(data, "password"))
    token = create_access_token(u.id)
    return ok({"token": token, "user": u.to_dict()}, message="Login successful")
