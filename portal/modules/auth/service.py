import hashlib
import hmac
import time
import logging
from supabase import Client
from portal.modules.auth.schemas import (
    LoginRequest, RegisterRequest, AdminRegisterRequest, TokenResponse, RegisterResponse
)
from portal.modules.platform.service import PlatformService, registration_block_reason
from portal.config.permissions_config import dashboard_path_for_role
from portal.config.settings import settings
from fastapi import HTTPException
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


class AuthService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        # Service-role client; the request client is enough for read-only use
        self.admin_client = admin_client or supabase

    def _write_profile(self, user_id: str, full_name: str, role: str):
        """Profile row for a new auth user. On failure the auth user is removed so the email can be reused."""
        profile = {"id": user_id, "full_name": full_name, "role": role}
        if role == "mentor":
            profile["mentor_status"] = "pending"
        try:
            self.admin_client.table("profiles").upsert(profile).execute()
        except Exception as e:
            logger.error(f"Profile write for {user_id} failed, removing auth user: {e}")
            try:
                self.admin_client.auth.admin.delete_user(user_id)
            except Exception as cleanup_error:
                logger.error(f"Failed to remove auth user {user_id}: {cleanup_error}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {e}")

    def _register(self, create_user: Callable[[], Any], email: str, full_name: str, role: str) -> RegisterResponse:
        try:
            auth_response = create_user()
        except Exception as e:
            error_message = str(e)
            if "already" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

        if not auth_response or not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")

        user_id = auth_response.user.id
        self._write_profile(user_id, full_name, role)
        logger.info(f"Registered {role} account {user_id}")

        return RegisterResponse(
            user_id=user_id,
            email=auth_response.user.email or email,
            role=role,
            message="User registered successfully"
        )

    def create_account(self, email: str, password: str, full_name: str, role: str) -> RegisterResponse:
        """Self sign up through Supabase Auth and write the matching profiles row"""
        return self._register(
            lambda: self.supabase.auth.sign_up({
                "email": email,
                "password": password,
                "options": {
                    "data": {"full_name": full_name, "role": role}
                }
            }),
            email, full_name, role
        )

    def create_account_as_admin(self, email: str, password: str, full_name: str, role: str) -> RegisterResponse:
        """Create a user through the auth admin API; no session is opened on any client"""
        return self._register(
            lambda: self.admin_client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"full_name": full_name, "role": role},
            }),
            email, full_name, role
        )

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Public sign up for participants and mentors, honouring the registration settings"""
        config = PlatformService(self.supabase).get_registration_config()
        reason = registration_block_reason(config, register_data.email)
        if reason:
            raise HTTPException(status_code=403, detail=reason)
        return self.create_account(
            register_data.email, register_data.password, register_data.full_name, register_data.role
        )

    def register_admin(self, register_data: AdminRegisterRequest) -> RegisterResponse:
        """Sign up an admin; requires the configured admin registration key"""
        expected = settings.admin_registration_key
        if not expected:
            raise HTTPException(status_code=403, detail="Admin registration is disabled")
        if not hmac.compare_digest(register_data.registration_key, expected):
            raise HTTPException(status_code=403, detail="Invalid registration key")
        return self.create_account(
            register_data.email, register_data.password, register_data.full_name, "admin"
        )

    def _resolve_role(self, user_id: str, user_metadata: Optional[Dict[str, Any]]) -> Optional[str]:
        result = self.supabase.table("profiles")\
            .select("role")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if result.data:
            return result.data[0].get("role")
        return (user_metadata or {}).get("role")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth and report where the user should land"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            user = auth_response.user
            role = self._resolve_role(user.id, user.user_metadata)
            if role and not dashboard_path_for_role(role):
                logger.error(f"Unknown role {role} for user {user.id}")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=user.id,
                email=user.email or login_data.email,
                role=role,
                dashboard=dashboard_path_for_role(role) if role else None
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
