import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from models.user import AuthUser, LoginForm, RegisterForm
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

REGISTER_ERRORS = {
    "EMAIL_EXISTS": "This email is already registered.",
    "INVALID_PASSWORD": "Invalid password.",
    "EMAIL_NOT_FOUND": "User not found.",
}
REGISTER_FAILED = "Failed to register. Please try again."
LOGIN_FAILED = "Invalid email or password."
GOOGLE_LOGIN_FAILED = "Google sign-in failed. Please try again."
UNEXPECTED_ERROR = "An unexpected error occurred."

AuthListener = Callable[[Optional[AuthUser]], Any]


class AuthError(Exception):
    """
    Failure reported by the auth provider.

    `code` is the provider's error code (e.g. EMAIL_EXISTS), `message` is the
    user-facing text; the underlying cause only goes to the log.
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ProviderError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def _user_from_response(data: Dict[str, Any]) -> AuthUser:
    return AuthUser(
        uid=data["localId"],
        display_name=data.get("displayName") or None,
        email=data.get("email"),
        photo_url=data.get("photoUrl") or None,
        id_token=data.get("idToken"),
    )


def split_display_name(display_name: Optional[str]) -> tuple[str, str]:
    """First word is the first name, the rest is the last name"""
    names = display_name.split(" ") if display_name else ["User", ""]
    first_name = names[0]
    last_name = " ".join(names[1:]) if len(names) > 1 else ""
    return first_name, last_name


class FirebaseAuthClient:
    def __init__(self, api_key: str, session: aiohttp.ClientSession, db: FirestoreDB):
        self.api_key = api_key
        self.session = session
        self.db = db
        self.current_user: Optional[AuthUser] = None
        self._listeners: List[AuthListener] = []

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Call an Identity Toolkit endpoint, raising ProviderError with the provider's code"""
        async with self.session.post(
                url=f"{IDENTITY_TOOLKIT_URL}/{endpoint}",
                params={"key": self.api_key},
                json=payload,
        ) as response:
            data = await response.json(content_type=None)
            if response.status != 200:
                message = (data or {}).get("error", {}).get("message", "UNKNOWN")
                # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
                raise ProviderError(message.split(" ")[0])
            return data

    # session-change notifications

    def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        """
        Register for session changes. The callback fires asynchronously once with
        the current state and then after every sign in, sign up, sign out and
        profile update. Returns the function that unregisters it.
        """
        self._listeners.append(callback)
        asyncio.get_running_loop().call_soon(self._deliver, callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _deliver(self, callback: AuthListener) -> None:
        if callback in self._listeners:
            callback(self.current_user)

    def _set_current_user(self, user: Optional[AuthUser]) -> None:
        self.current_user = user
        loop = asyncio.get_running_loop()
        for callback in list(self._listeners):
            loop.call_soon(self._deliver, callback)

    # operations

    async def sign_in(self, form: LoginForm) -> AuthUser:
        try:
            data = await self._post("accounts:signInWithPassword", {
                "email": form.email,
                "password": form.password,
                "returnSecureToken": True,
            })
        except ProviderError as e:
            logger.warning("Sign in failed for %s: %s", form.email, e.code)
            raise AuthError(e.code, LOGIN_FAILED)
        except aiohttp.ClientError as e:
            logger.error("Sign in request failed: %s", e)
            raise AuthError("NETWORK_ERROR", UNEXPECTED_ERROR)

        user = _user_from_response(data)
        self._set_current_user(user)
        return user

    async def register(self, form: RegisterForm) -> AuthUser:
        """
        Create an email/password account, set its display name and write the
        matching profile document
        """
        display_name = f"{form.first_name} {form.last_name}"
        try:
            created = await self._post("accounts:signUp", {
                "email": form.email,
                "password": form.password,
                "returnSecureToken": True,
            })
            updated = await self._post("accounts:update", {
                "idToken": created["idToken"],
                "displayName": display_name,
                "returnSecureToken": True,
            })
        except ProviderError as e:
            logger.warning("Registration failed for %s: %s", form.email, e.code)
            raise AuthError(e.code, REGISTER_ERRORS.get(e.code, REGISTER_FAILED))
        except aiohttp.ClientError as e:
            logger.error("Registration request failed: %s", e)
            raise AuthError("NETWORK_ERROR", UNEXPECTED_ERROR)

        user = _user_from_response({**created, **updated, "displayName": display_name})

        try:
            self.db.create_user({
                "uid": user.uid,
                "firstName": form.first_name,
                "lastName": form.last_name,
                "email": form.email,
                "photoURL": None,
                "createdAt": datetime.now().isoformat(),
            })
        except Exception as e:
            logger.error("Failed to write profile for %s: %s", user.uid, e)
            raise AuthError("PROFILE_WRITE_FAILED", REGISTER_FAILED)

        self._set_current_user(user)
        return user

    async def sign_in_with_google(self, google_id_token: str) -> AuthUser:
        """Federated sign in with a Google ID token, creating the profile on first login"""
        try:
            data = await self._post("accounts:signInWithIdp", {
                "postBody": f"id_token={google_id_token}&providerId=google.com",
                "requestUri": "http://localhost",
                "returnSecureToken": True,
                "returnIdpCredential": True,
            })
        except (ProviderError, aiohttp.ClientError) as e:
            logger.warning("Google sign in failed: %s", e)
            raise AuthError(getattr(e, "code", "NETWORK_ERROR"), GOOGLE_LOGIN_FAILED)

        user = _user_from_response(data)

        try:
            if not self.db.user_exists(user.uid):
                first_name, last_name = split_display_name(user.display_name)
                self.db.create_user({
                    "uid": user.uid,
                    "firstName": first_name,
                    "lastName": last_name,
                    "email": user.email,
                    "photoURL": user.photo_url,
                    "createdAt": datetime.now().isoformat(),
                })
        except Exception as e:
            logger.error("Failed to write profile for %s: %s", user.uid, e)
            raise AuthError("PROFILE_WRITE_FAILED", GOOGLE_LOGIN_FAILED)

        self._set_current_user(user)
        return user

    async def update_display_name(self, display_name: str) -> AuthUser:
        if self.current_user is None or not self.current_user.id_token:
            raise AuthError("NOT_SIGNED_IN", "You must be signed in to update your profile.")

        try:
            data = await self._post("accounts:update", {
                "idToken": self.current_user.id_token,
                "displayName": display_name,
                "returnSecureToken": True,
            })
        except (ProviderError, aiohttp.ClientError) as e:
            logger.error("Profile update failed: %s", e)
            raise AuthError(getattr(e, "code", "NETWORK_ERROR"), UNEXPECTED_ERROR)

        user = self.current_user.model_copy(update={
            "display_name": display_name,
            "id_token": data.get("idToken") or self.current_user.id_token,
        })
        self._set_current_user(user)
        return user

    async def sign_out(self) -> None:
        self._set_current_user(None)
