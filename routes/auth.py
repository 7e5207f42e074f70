from typing import Any, Dict

from fastapi import APIRouter

from dependencies import Auth, CurrentUser, Session
from models.user import AuthUser, DisplayNameUpdate, GoogleLoginRequest, LoginForm, RegisterForm

router = APIRouter()


@router.post("/register", response_model=AuthUser)
async def register(form: RegisterForm, auth: Auth):
    """Create an email/password account and its profile"""
    return await auth.register(form)


@router.post("/login", response_model=AuthUser)
async def login(form: LoginForm, auth: Auth):
    return await auth.sign_in(form)


@router.post("/google", response_model=AuthUser)
async def google_login(request: GoogleLoginRequest, auth: Auth):
    """Federated sign in with an ID token obtained from Google"""
    return await auth.sign_in_with_google(request.id_token)


@router.post("/logout")
async def logout(auth: Auth) -> Dict[str, Any]:
    await auth.sign_out()
    return {"success": True}


@router.get("/session")
async def get_session_state(session: Session) -> Dict[str, Any]:
    """Current identity and whether the session is still resolving"""
    user = session.current_user
    return {
        "isLoading": session.is_loading,
        "currentUser": user.model_dump(by_alias=True) if user else None,
    }


@router.put("/profile", response_model=AuthUser)
async def update_profile(update: DisplayNameUpdate, current_user: CurrentUser, auth: Auth):
    return await auth.update_display_name(update.display_name)
