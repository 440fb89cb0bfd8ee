from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from planform.core.observability import emit, request_id_of
from planform.modules.auth.deps import current_user
from planform.modules.auth.session import clear_session_cookie, start_session

from .models import User
from .schemas import SignInIn, SignOutOut, SignUpIn, UserInfoOut, VerifyEmailIn
from .service import authenticate, create_user, user_info, verify_email

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/user-info", response_model=UserInfoOut)
def get_user_info(user: User = Depends(current_user)) -> UserInfoOut:
    return UserInfoOut(**user_info(user))


@router.post("/auth/sign-up", response_model=UserInfoOut, status_code=201)
def sign_up(body: SignUpIn, request: Request, response: Response) -> UserInfoOut:
    user, _token = create_user(email=body.email, password=body.password, name=body.name)
    rid = request_id_of(request)
    emit("info", "email.verification.queued", f"verification email for user {user.id}", rid, __name__,
         user_id=user.id, email=user.email)
    emit("info", "auth.sign_up", f"user {user.id} signed up", rid, __name__, user_id=user.id)
    start_session(response, user.id)
    return UserInfoOut(**user_info(user))


@router.post("/auth/sign-in", response_model=UserInfoOut)
def sign_in(body: SignInIn, request: Request, response: Response) -> UserInfoOut:
    user = authenticate(body.email, body.password)
    emit("info", "auth.sign_in", f"user {user.id} signed in", request_id_of(request), __name__, user_id=user.id)
    start_session(response, user.id)
    return UserInfoOut(**user_info(user))


@router.post("/auth/sign-out", response_model=SignOutOut)
def sign_out(response: Response) -> SignOutOut:
    clear_session_cookie(response)
    return SignOutOut()


@router.post("/auth/verify-email", response_model=UserInfoOut)
def post_verify_email(body: VerifyEmailIn, request: Request) -> UserInfoOut:
    user = verify_email(body.token)
    emit("info", "auth.email_verified", f"user {user.id} verified", request_id_of(request), __name__, user_id=user.id)
    return UserInfoOut(**user_info(user))
