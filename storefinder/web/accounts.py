"""
Account Pages

Login, logout, registration, the account form and the password reset flow.
"""

import logging

from fastapi import APIRouter, Depends, Request

from storefinder.api.deps import get_page_context, require_login, get_auth_service
from storefinder.schemas.auth import (
    UserRegister,
    UserLogin,
    PasswordForgotRequest,
    PasswordResetConfirm,
    AccountUpdate,
)
from storefinder.services.auth_service import AuthService, confirmed_passwords
from storefinder.web.context import PageContext, form_to_dict, validate_form

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accounts"])

PASSWORDS_DO_NOT_MATCH = "Passwords do not match!"


def _request_base_url(request: Request) -> str:
    """Scheme and host the user reached us on."""
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"


# ============================================================
# Login / Logout
# ============================================================

@router.get("/login")
async def login_form(ctx: PageContext = Depends(get_page_context)):
    return ctx.render("login.html", title="Login")


@router.post("/login")
async def login(
    request: Request,
    ctx: PageContext = Depends(get_page_context),
    auth_service: AuthService = Depends(get_auth_service)
):
    login_data = validate_form(UserLogin, form_to_dict(await request.form()))

    try:
        user = await auth_service.authenticate(login_data)
    except ValueError as e:
        ctx.flash("error", str(e))
        return ctx.redirect("/login")

    ctx.login(user)
    ctx.flash("success", "You are now logged in!")
    return ctx.redirect("/")


@router.get("/logout")
async def logout(ctx: PageContext = Depends(get_page_context)):
    ctx.logout()
    ctx.flash("success", "You are now logged out!")
    return ctx.redirect("/")


# ============================================================
# Registration
# ============================================================

@router.get("/register")
async def register_form(ctx: PageContext = Depends(get_page_context)):
    return ctx.render("register.html", title="Register")


@router.post("/register")
async def register(
    request: Request,
    ctx: PageContext = Depends(get_page_context),
    auth_service: AuthService = Depends(get_auth_service)
):
    data = form_to_dict(await request.form())
    user_data = validate_form(UserRegister, data)

    if not confirmed_passwords(user_data.password, user_data.password_confirm):
        ctx.flash("error", PASSWORDS_DO_NOT_MATCH)
        return ctx.back("/register")

    try:
        user = await auth_service.register(user_data)
    except ValueError as e:
        ctx.flash("error", str(e))
        return ctx.back("/register")

    ctx.login(user)
    ctx.flash("success", "You are now logged in!")
    return ctx.redirect("/")


# ============================================================
# Account
# ============================================================

@router.get("/account")
async def account_form(ctx: PageContext = Depends(require_login)):
    return ctx.render("account.html", title="Edit Your Account")


@router.post("/account")
async def update_account(
    request: Request,
    ctx: PageContext = Depends(require_login),
    auth_service: AuthService = Depends(get_auth_service)
):
    account_data = validate_form(AccountUpdate, form_to_dict(await request.form()))

    try:
        await auth_service.update_account(ctx.user, account_data)
    except ValueError as e:
        ctx.flash("error", str(e))
        return ctx.back("/account")

    ctx.flash("success", "Updated the profile!")
    return ctx.back("/account")


# ============================================================
# Password reset
# ============================================================

@router.post("/account/forgot")
async def forgot(
    request: Request,
    ctx: PageContext = Depends(get_page_context),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Email a reset link when the account exists.

    The notice and redirect are the same whether or not it does.
    """
    forgot_data = validate_form(PasswordForgotRequest, form_to_dict(await request.form()))

    if forgot_data.email:
        await auth_service.request_password_reset(
            forgot_data.email,
            base_url=_request_base_url(request),
        )

    ctx.flash("success", "You have been emailed a password reset link.")
    return ctx.redirect("/login")


@router.get("/account/reset/{token}")
async def reset_form(
    token: str,
    ctx: PageContext = Depends(get_page_context),
    auth_service: AuthService = Depends(get_auth_service)
):
    user = await auth_service.get_user_for_reset(token)
    if not user:
        ctx.flash("error", "Password reset is invalid or has expired")
        return ctx.redirect("/login")

    return ctx.render("reset.html", title="Reset your Password", token=token)


@router.post("/account/reset/{token}")
async def reset_password(
    token: str,
    request: Request,
    ctx: PageContext = Depends(get_page_context),
    auth_service: AuthService = Depends(get_auth_service)
):
    data = form_to_dict(await request.form())

    if not confirmed_passwords(data.get("password"), data.get("password-confirm")):
        ctx.flash("error", PASSWORDS_DO_NOT_MATCH)
        return ctx.back(f"/account/reset/{token}")

    reset_data = validate_form(PasswordResetConfirm, data)

    try:
        user = await auth_service.reset_password(token, reset_data.password)
    except ValueError as e:
        ctx.flash("error", str(e))
        return ctx.redirect("/login")

    ctx.login(user)
    ctx.flash("success", "Nice! Your password has been reset! You are now logged in!")
    return ctx.redirect("/")
