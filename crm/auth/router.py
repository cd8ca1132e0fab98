"""
Routes API d'authentification.

- /register, /login, /logout : publiques
- /profile, /change-password, /verify : token requis
"""
import logging

from fastapi import APIRouter, status

from crm.auth.dependencies import AuthServiceDep, CurrentUserDep
from crm.auth.models import AuthResponse, ChangePasswordRequest, LoginRequest, RegisterRequest, TokenVerification
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.users.models import UserProfileUpdate, UserRead, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def handle_auth_service_errors(e: Exception):
    handle_service_errors(e, "Auth")


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, auth_service: AuthServiceDep):
    logger.info(f"[Router] Register attempt: {data.email}")
    try:
        user = await auth_service.register(data)
        return UserResponse(message="Utilisateur créé avec succès", user=UserRead.model_validate(user))
    except Exception as e:
        handle_auth_service_errors(e)


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, auth_service: AuthServiceDep):
    """Authentifie l'utilisateur (JSON email/mot de passe) et retourne un token Bearer."""
    logger.info(f"[Router] Login attempt: {data.email}")
    try:
        token, user = await auth_service.login(data.email, data.password)
        return AuthResponse(message="Connexion réussie", access_token=token, user=UserRead.model_validate(user))
    except Exception as e:
        handle_auth_service_errors(e)


@router.post("/logout", response_model=MessageResponse)
async def logout():
    # Tokens sans état: le client supprime simplement son token
    return MessageResponse(message="Déconnexion réussie")


@router.get("/profile", response_model=UserRead)
async def read_profile(current_user: CurrentUserDep):
    return UserRead.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(data: UserProfileUpdate, current_user: CurrentUserDep, auth_service: AuthServiceDep):
    try:
        user = await auth_service.update_profile(current_user, data)
        return UserResponse(message="Profil mis à jour avec succès", user=UserRead.model_validate(user))
    except Exception as e:
        handle_auth_service_errors(e)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(data: ChangePasswordRequest, current_user: CurrentUserDep, auth_service: AuthServiceDep):
    try:
        await auth_service.change_password(current_user, data)
        return MessageResponse(message="Mot de passe modifié avec succès")
    except Exception as e:
        handle_auth_service_errors(e)


@router.get("/verify", response_model=TokenVerification)
async def verify_token(current_user: CurrentUserDep):
    return TokenVerification(valid=True, user_id=current_user.id, email=current_user.email, role=current_user.role)
